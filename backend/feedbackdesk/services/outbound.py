"""Best-effort mirroring of ticket changes to sheets, chat and the task tracker.

Each call fans out to the owning department and, when different, the
oversight department. Destinations are independent: one failing never stops
the other, and nothing here raises for an integration problem. The caller gets
a ``FanoutResult`` describing what happened per destination.
"""
from __future__ import annotations
import logging
from typing import Callable, List, Optional

from feedbackdesk import get_integrations
from feedbackdesk.integrations.errors import IntegrationError
from feedbackdesk.integrations.outcomes import (
    DISABLED, FAILED, OK, SKIPPED, DeliveryOutcome, FanoutResult,
)
from feedbackdesk.integrations.sheets import FIELD_COLUMNS, SheetsClient
from feedbackdesk.integrations.telegram import format_ticket_message
from feedbackdesk.constants.catalog import urgency_level_label
from feedbackdesk.models.ticket import Ticket
from feedbackdesk.services.department_settings import get_settings
from feedbackdesk.services.tickets import (
    set_tracker_task_id, status_labels, ticket_sheet_row, ticket_to_dict,
)
from feedbackdesk.utils.validation import to_iso

logger = logging.getLogger(__name__)

SHEETS = 'sheets'
CHAT = 'chat'
TRACKER = 'tracker'

PUSHABLE_FIELDS = tuple(FIELD_COLUMNS)


def _each_sheet(department: str, action: Callable[[SheetsClient], Optional[int]],
                what: str, ticket_id: str) -> FanoutResult:
    hub = get_integrations()
    result = FanoutResult()
    for dept in hub.fanout_departments(department):
        client = hub.sheets(get_settings(dept))
        if client is None:
            result.add(DeliveryOutcome(SHEETS, dept, DISABLED))
            continue
        try:
            row = action(client)
        except IntegrationError as e:
            logger.warning('sheet %s failed for ticket %s in %s: %s', what, ticket_id, dept, e)
            result.add(DeliveryOutcome(SHEETS, dept, FAILED, str(e)))
            continue
        if row is None:
            logger.info('ticket %s not in %s sheet, %s skipped', ticket_id, dept, what)
            result.add(DeliveryOutcome(SHEETS, dept, SKIPPED, 'row not found'))
        else:
            result.add(DeliveryOutcome(SHEETS, dept, OK, data={'row': row}))
    return result


def field_values(t: Ticket, field: str) -> List[str]:
    """Cell values for the columns a field owns, in sheet order."""
    if field == 'status':
        return list(status_labels(t))
    if field == 'deadline':
        return [to_iso(t.deadline) or '']
    if field == 'urgency_level':
        return [urgency_level_label(t.urgency_level)]
    if field == 'assignee':
        return [t.assignee.name if t.assignee is not None else '']
    raise ValueError(f'field {field!r} is not mirrored')


def push_new_ticket(t: Ticket) -> FanoutResult:
    row = ticket_sheet_row(t)
    return _each_sheet(t.department, lambda c: c.append_row(row), 'append', t.id)


def push_field(t: Ticket, field: str) -> FanoutResult:
    values = field_values(t, field)
    return _each_sheet(t.department, lambda c: c.update_field(t.id, field, values), f'{field} update', t.id)


def push_redirect(t: Ticket) -> FanoutResult:
    """Blank the assignment and rewrite the status on the rows the ticket already has.

    The rows live in the sheets of the department it came from and the
    oversight department; the new department's sheet never had one.
    """
    status = field_values(t, 'status')
    assignee = field_values(t, 'assignee')

    def rewrite(client: SheetsClient) -> Optional[int]:
        row = client.update_field(t.id, 'status', status)
        if row is not None:
            client.update_field(t.id, 'assignee', assignee)
        return row
    return _each_sheet(t.redirected_from, rewrite, 'redirect', t.id)


def delete_sheet_rows(ticket_id: str, department: str) -> FanoutResult:
    return _each_sheet(department, lambda c: c.delete_row(ticket_id), 'delete', ticket_id)


def notify_new_ticket(t: Ticket) -> FanoutResult:
    hub = get_integrations()
    notifier = hub.notifier()
    text = format_ticket_message(ticket_to_dict(t))
    result = FanoutResult()
    for dept in hub.fanout_departments(t.department):
        settings = get_settings(dept)
        if settings is None or not (settings.telegram_bot_token and settings.telegram_chat_id):
            result.add(DeliveryOutcome(CHAT, dept, DISABLED))
            continue
        try:
            notifier.send(settings.telegram_bot_token, settings.telegram_chat_id, text)
        except IntegrationError as e:
            logger.warning('chat notification failed for ticket %s in %s: %s', t.id, dept, e)
            result.add(DeliveryOutcome(CHAT, dept, FAILED, str(e)))
            continue
        result.add(DeliveryOutcome(CHAT, dept, OK))
    return result


def announce_new_ticket(t: Ticket) -> FanoutResult:
    """Chat notifications, then the sheet append; used right after intake."""
    result = notify_new_ticket(t)
    return result.extend(push_new_ticket(t))


def create_tracker_task(t: Ticket) -> FanoutResult:
    """Open a task in the department's tracker and remember its id on the ticket."""
    result = FanoutResult()
    tracker = get_integrations().tracker(get_settings(t.department))
    if tracker is None:
        result.add(DeliveryOutcome(TRACKER, t.department, DISABLED))
        return result
    try:
        task_id = tracker.create_task(ticket_to_dict(t))
    except IntegrationError as e:
        logger.warning('tracker task creation failed for ticket %s in %s: %s', t.id, t.department, e)
        result.add(DeliveryOutcome(TRACKER, t.department, FAILED, str(e)))
        return result
    set_tracker_task_id(t, task_id)
    logger.info('ticket %s linked to tracker task %s', t.id, task_id)
    result.add(DeliveryOutcome(TRACKER, t.department, OK, data={'task_id': task_id}))
    return result
