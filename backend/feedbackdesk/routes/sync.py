from __future__ import annotations
from flask import Blueprint, abort
from feedbackdesk.decorators.auth import require_permissions
from feedbackdesk.decorators.audit import audit_log
from feedbackdesk.services.inbound import pull_sheet_statuses, sync_tracker_statuses
from feedbackdesk.constants.catalog import DEPARTMENTS

sync_bp = Blueprint('sync', __name__)


def _check(department: str):
    if department not in DEPARTMENTS:
        abort(404, description='department not found')


@sync_bp.post('/<department>/sheets')
@require_permissions('SYNC.RUN', department_arg='department')
@audit_log('SYNC.SHEETS', entity='Department', entity_id_arg='department', new_keys=['updated_count'],
           description_builder=lambda d, a, kw: f"Pulled {d.get('updated_count', 0)} status changes from the sheet")
def pull_sheets(department: str):
    _check(department)
    return pull_sheet_statuses(department)


@sync_bp.post('/<department>/tracker')
@require_permissions('SYNC.RUN', department_arg='department')
@audit_log('SYNC.TRACKER', entity='Department', entity_id_arg='department', new_keys=['updated_count', 'checked'],
           description_builder=lambda d, a, kw: f"Pulled {d.get('updated_count', 0)} status changes from the tracker")
def pull_tracker(department: str):
    _check(department)
    return sync_tracker_statuses(department)
