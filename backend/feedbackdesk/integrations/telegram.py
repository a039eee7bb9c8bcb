"""Chat-bot notifications for newly submitted tickets."""
from __future__ import annotations
import logging
from typing import Any, Dict

import requests

from feedbackdesk.constants.catalog import (
    ANONYMOUS_LABEL, OBJECT_LABELS, ROLE_LABELS, TYPE_EMOJI, TYPE_LABELS, URGENCY_URGENT,
    department_label,
)
from .errors import NotifierError

logger = logging.getLogger(__name__)

MESSAGE_PREVIEW_CHARS = 200
URGENT_MARK = '⚡'


def format_ticket_message(ticket: Dict[str, Any]) -> str:
    message = ticket.get('message') or ''
    preview = message[:MESSAGE_PREVIEW_CHARS] + ('...' if len(message) > MESSAGE_PREVIEW_CHARS else '')
    submitter = ANONYMOUS_LABEL if ticket.get('is_anonymous') else (ticket.get('name') or ANONYMOUS_LABEL)
    header = TYPE_EMOJI.get(ticket.get('type'), '')
    if ticket.get('urgency') == URGENCY_URGENT:
        header = f'{header} {URGENT_MARK}'
    lines = [
        f'{header} New feedback',
        '',
        f"Type: {TYPE_LABELS.get(ticket.get('type'), ticket.get('type'))}",
        f"From: {submitter} ({ROLE_LABELS.get(ticket.get('user_role'), ticket.get('user_role'))})",
        f"Department: {department_label(ticket.get('department'))}",
    ]
    if ticket.get('object_code'):
        lines.append(f"Object: {OBJECT_LABELS.get(ticket['object_code'], ticket['object_code'])}")
    lines.append(f'Message: {preview}')
    return '\n'.join(lines)


class TelegramNotifier:
    def __init__(self, session: requests.Session, base_url: str, timeout: float = 10.0):
        self.session = session
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def send(self, bot_token: str, chat_id: str, text: str) -> Dict[str, Any]:
        url = f'{self.base_url}/bot{bot_token}/sendMessage'
        try:
            resp = self.session.post(url, json={'chat_id': chat_id, 'text': text}, timeout=self.timeout)
        except requests.RequestException as e:
            # Transport errors quote the URL, which carries the bot token
            raise NotifierError(f'Bot API unreachable ({type(e).__name__})') from e
        if not resp.ok:
            raise NotifierError(f'Bot API error {resp.status_code}: {resp.text[:200]}')
        try:
            body = resp.json()
        except ValueError:
            raise NotifierError(f'Bot API returned non-JSON response ({resp.status_code})')
        if body.get('ok') is False:
            raise NotifierError(f"Bot API rejected message: {body.get('description')}")
        return body
