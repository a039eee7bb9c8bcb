"""Public intake: the options the form renders and the submit endpoint."""
from __future__ import annotations
import logging
from flask import Blueprint, request
from feedbackdesk.constants.catalog import (
    DEPARTMENTS, FEEDBACK_TYPES, RESIDENTIAL_OBJECTS, ROLE_LABELS, TYPE_EMOJI, TYPE_LABELS,
    URGENCIES, URGENCY_LABELS, USER_ROLES, department_label,
)
from feedbackdesk.integrations.outcomes import SUMMARY_SYNCED
from feedbackdesk.services.outbound import announce_new_ticket
from feedbackdesk.services.tickets import create_ticket, ticket_to_dict, validate_submission

logger = logging.getLogger(__name__)

sub_bp = Blueprint('submissions', __name__)


@sub_bp.get('/options')
def options():
    return {
        'roles': [{'code': r, 'label': ROLE_LABELS[r]} for r in USER_ROLES],
        'types': [{'code': t, 'label': TYPE_LABELS[t], 'emoji': TYPE_EMOJI.get(t, '')} for t in FEEDBACK_TYPES],
        'departments': [{'code': d, 'label': department_label(d)} for d in DEPARTMENTS],
        'objects': [dict(o) for o in RESIDENTIAL_OBJECTS],
        'urgencies': [{'code': u, 'label': URGENCY_LABELS[u]} for u in URGENCIES],
    }


@sub_bp.post('')
def submit():
    fields = validate_submission(request.json or {})
    t = create_ticket(fields)
    # The ticket is stored; notification and sheet failures only show up in the outcome list
    result = announce_new_ticket(t)
    if result.summary != SUMMARY_SYNCED:
        logger.info('ticket %s stored with integration summary %s', t.id, result.summary)
    return {'ticket': ticket_to_dict(t), 'integrations': result.to_dict()}, 201
