from __future__ import annotations
from flask import abort


def apply_multi_sort(query, sort_expr: str | None, allowed: dict, default, tie_breaker):
    """Order a query by a comma-separated sort expression.

    Tokens are keys of ``allowed`` (key -> column), '-' prefix for descending.
    Without an expression the ``default`` clause list applies. ``tie_breaker``
    always comes last so pages are stable.
    """
    if not sort_expr:
        return query.order_by(*default, tie_breaker)
    clauses = []
    for raw in sort_expr.split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token.lstrip('-')
        col = allowed.get(key)
        if col is None:
            abort(400, description=f'Invalid sort field {key}')
        clauses.append(col.desc() if desc else col.asc())
    clauses.append(tie_breaker)
    return query.order_by(*clauses)
