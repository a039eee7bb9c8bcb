"""Paginated list responses with ETag / Last-Modified support.

Admin dashboards re-poll their lists; a matching ``If-None-Match`` (or an
``If-Modified-Since`` no older than the newest row) short-circuits to 304.
"""
from __future__ import annotations
import hashlib
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Iterable, List, Optional, Tuple

from flask import abort, make_response, request
from sqlalchemy.orm import Query

TIMESTAMP_TOLERANCE = timedelta(seconds=1)
DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def canonicalize_timestamp(dt: datetime) -> datetime:
    """UTC tz-aware timestamp truncated to whole seconds."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)


def pagination_args() -> Tuple[int, int]:
    """limit/offset from the query string, clamped to [1, MAX_LIMIT] and >= 0."""
    try:
        limit = int(request.args.get('limit', DEFAULT_LIMIT))
        offset = int(request.args.get('offset', 0))
    except ValueError:
        abort(400, description='limit/offset must be int')
    return max(1, min(limit, MAX_LIMIT)), max(0, offset)


def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    limit, offset = pagination_args()
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


def paginate_list(items: List) -> Tuple[List, int, int, int]:
    """Same contract as ``apply_pagination`` for rows already in memory."""
    limit, offset = pagination_args()
    return items[offset:offset + limit], len(items), limit, offset


def compute_etag(ids: Iterable, total: int, limit: int, offset: int, latest_iso: str = '') -> str:
    seed = f"{[str(i) for i in ids]}|{total}|{limit}|{offset}|{latest_iso}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


def build_list_payload(rows: list, total: int, limit: int, offset: int):
    return {
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows),
        },
    }


def _iso(dt: datetime) -> str:
    return dt.isoformat().replace('+00:00', 'Z')


def _stamp(resp, etag: str, latest: Optional[datetime]):
    resp.headers['ETag'] = etag
    if latest is not None:
        resp.headers['Last-Modified'] = format_datetime(latest, usegmt=True)
        resp.headers['X-Last-Modified-ISO'] = _iso(latest)
    return resp


def _parse_if_modified_since(header_val: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(header_val.replace('Z', '+00:00'))
    except ValueError:
        try:
            dt = parsedate_to_datetime(header_val)
        except (TypeError, ValueError):
            return None
    if dt is None:
        return None
    return canonicalize_timestamp(dt)


def _not_modified(etag: str, latest: Optional[datetime]) -> bool:
    # If-None-Match takes precedence over If-Modified-Since
    inm = request.headers.get('If-None-Match')
    if inm:
        return inm.strip('"') == etag
    ims_raw = request.headers.get('If-Modified-Since')
    if ims_raw and latest is not None:
        ims = _parse_if_modified_since(ims_raw)
        return ims is not None and latest <= ims + TIMESTAMP_TOLERANCE
    return False


def list_response(rows: list, total: int, limit: int, offset: int,
                  latest_ts: Optional[datetime] = None, head: bool = False):
    """Build the list response, or a bare 304 when the client copy is current."""
    latest = canonicalize_timestamp(latest_ts) if isinstance(latest_ts, datetime) else None
    etag = compute_etag([r.get('id') for r in rows], total, limit, offset, _iso(latest) if latest else '')
    if _not_modified(etag, latest):
        return _stamp(make_response('', 304), etag, latest)
    resp = _stamp(make_response(build_list_payload(rows, total, limit, offset)), etag, latest)
    if head:
        resp.set_data(b'')
    return resp
