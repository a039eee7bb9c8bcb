from __future__ import annotations
from datetime import datetime, timezone
from flask import Blueprint, request, make_response, abort
from feedbackdesk.decorators.auth import require_permissions
from feedbackdesk.utils.listing import paginate_list, list_response
from feedbackdesk.services.policy import scoped_department
from feedbackdesk.services import reports
from feedbackdesk.services.tickets import ticket_to_dict

views_bp = Blueprint('views', __name__)


def _department():
    return scoped_department(request.args.get('department'))


@views_bp.get('/dashboard')
@require_permissions('FB.READ')
def dashboard():
    return reports.dashboard_stats(_department())


@views_bp.get('/reports')
@require_permissions('FB.READ')
def report():
    return reports.build_report(_department())


@views_bp.get('/meetings')
@require_permissions('FB.READ')
def meetings():
    return reports.meeting_agenda(_department())


@views_bp.get('/redirected')
@require_permissions('FB.READ')
def redirected():
    department = _department()
    if not department:
        abort(400, description='department required')
    rows, total, limit, offset = paginate_list([ticket_to_dict(t) for t in reports.redirected_into(department)])
    return list_response(rows, total, limit, offset, reports.latest_change(department))


@views_bp.get('/export.csv')
@require_permissions('FB.READ')
def export_csv():
    department = _department()
    resp = make_response(reports.export_csv(department))
    stamp = datetime.now(timezone.utc).strftime('%Y-%m-%d')
    resp.headers['Content-Type'] = 'text/csv; charset=utf-8'
    resp.headers['Content-Disposition'] = f'attachment; filename=feedback_{department or "all"}_{stamp}.csv'
    return resp
