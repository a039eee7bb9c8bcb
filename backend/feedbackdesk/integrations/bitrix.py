"""Task-tracker (Bitrix24 incoming webhook) client."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import requests

from feedbackdesk.constants.catalog import (
    ANONYMOUS_LABEL, STATUS_IN_PROGRESS, STATUS_NEW, STATUS_RESOLVED, TYPE_LABELS,
    URGENCY_LABELS, URGENCY_URGENT, department_label,
)
from .errors import TrackerError

logger = logging.getLogger(__name__)

PRIORITY_HIGH = '2'
PRIORITY_NORMAL = '1'
DEFAULT_RESPONSIBLE_ID = 1
DEFAULT_CREATOR_ID = 1

REMOTE_STATUS_MAP = {
    1: STATUS_NEW,          # new
    2: STATUS_IN_PROGRESS,  # pending
    3: STATUS_IN_PROGRESS,  # in progress
    4: STATUS_IN_PROGRESS,  # awaiting control
    5: STATUS_RESOLVED,     # completed
    6: STATUS_RESOLVED,     # deferred
    7: STATUS_RESOLVED,     # declined
}


def map_remote_status(code) -> str:
    try:
        return REMOTE_STATUS_MAP.get(int(code), STATUS_IN_PROGRESS)
    except (TypeError, ValueError):
        return STATUS_IN_PROGRESS


def build_task_payload(ticket: Dict[str, Any]) -> Dict[str, Any]:
    type_label = TYPE_LABELS.get(ticket.get('type'), ticket.get('type'))
    urgency = ticket.get('urgency')
    dept = department_label(ticket.get('department'))
    name = None if ticket.get('is_anonymous') else ticket.get('name')
    lines = [
        f'Type: {type_label}',
        f'Urgency: {URGENCY_LABELS.get(urgency, urgency)}',
        f'Department: {dept}',
        f'From: {name or ANONYMOUS_LABEL}',
    ]
    if ticket.get('contact'):
        lines.append(f"Contact: {ticket['contact']}")
    lines += ['', 'Message:', ticket.get('message') or '', '---', f"Feedback ID: {ticket['id']}"]
    return {
        'fields': {
            'TITLE': f'{type_label}: {dept}',
            'DESCRIPTION': '\n'.join(lines),
            'PRIORITY': PRIORITY_HIGH if urgency == URGENCY_URGENT else PRIORITY_NORMAL,
            'RESPONSIBLE_ID': DEFAULT_RESPONSIBLE_ID,
            'CREATED_BY': DEFAULT_CREATOR_ID,
            'GROUP_ID': 0,
            'TAGS': [type_label, dept],
        }
    }


class BitrixTracker:
    def __init__(self, session: requests.Session, webhook_url: str, timeout: float = 10.0):
        if not webhook_url:
            raise TrackerError('Webhook URL not provided')
        self.session = session
        self.webhook_url = webhook_url.rstrip('/')
        self.timeout = timeout

    def _call(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = self.session.request(method, f'{self.webhook_url}/{endpoint}', timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TrackerError(f'Tracker unreachable ({type(e).__name__})') from e
        try:
            body = resp.json()
        except ValueError:
            raise TrackerError(f'Tracker returned non-JSON response ({resp.status_code})')
        if body.get('error'):
            raise TrackerError(body.get('error_description') or str(body['error']))
        if not resp.ok:
            raise TrackerError(f'Tracker error {resp.status_code}')
        return body

    def create_task(self, ticket: Dict[str, Any]) -> str:
        body = self._call('POST', 'tasks.task.add.json', json=build_task_payload(ticket))
        result = body.get('result')
        task_id = None
        if isinstance(result, dict):
            task_id = (result.get('task') or {}).get('id')
        elif result is not None:
            task_id = result
        if task_id is None:
            raise TrackerError('Tracker response carried no task id')
        return str(task_id)

    def get_task_status(self, task_id: str) -> Optional[int]:
        body = self._call('GET', 'tasks.task.get.json', params={'taskId': task_id})
        task = (body.get('result') or {}).get('task') or {}
        status = task.get('status')
        return int(status) if status is not None else None
