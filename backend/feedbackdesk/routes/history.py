from __future__ import annotations
from flask import Blueprint, request, abort
from feedbackdesk.decorators.auth import require_permissions
from feedbackdesk.services.audit import list_audit, audit_to_dict
from feedbackdesk.services.policy import scoped_department
from feedbackdesk.utils.listing import MAX_LIMIT
from feedbackdesk import get_change_feed

history_bp = Blueprint('history', __name__)


@history_bp.get('/history')
@require_permissions('LOG.READ')
def history():
    try:
        limit = int(request.args.get('limit', 100))
    except ValueError:
        abort(400, description='limit must be int')
    limit = max(1, min(limit, MAX_LIMIT))
    rows = list_audit(limit, entity=request.args.get('entity'), entity_id=request.args.get('entity_id'))
    return {'data': [audit_to_dict(r) for r in rows]}


@history_bp.get('/events')
@require_permissions('FB.READ')
def events():
    """Change-feed polling. ``refetch`` tells the client its copy can no longer be patched."""
    try:
        since = int(request.args.get('since', 0))
    except ValueError:
        abort(400, description='since must be int')
    department = scoped_department(request.args.get('department'))
    feed = get_change_feed()
    return {
        'last_seq': feed.last_seq,
        'refetch': feed.has_gap(since),
        'events': [e.to_dict() for e in feed.since(since, department)],
    }
