"""Keyword triage hints shown on the ticket detail page.

Plain substring cues, no model behind it. Cues cover Russian stems and their
English counterparts since submissions arrive in both.
"""
from typing import Any, Dict

SUMMARY_LENGTH = 100

NEGATIVE_CUES = ('проблем', 'жалоб', 'problem', 'complain')
POSITIVE_CUES = ('хорош', 'благодар', 'good', 'thank')
URGENT_CUES = ('срочн', 'urgent', 'asap')

URGENT_SCORE = 8
DEFAULT_SCORE = 5

RECOMMENDED_ACTION = 'Review the request and contact the submitter'


def _has_any(text: str, cues) -> bool:
    return any(cue in text for cue in cues)


def analyze_message(message: str) -> Dict[str, Any]:
    text = (message or '').lower()
    if _has_any(text, NEGATIVE_CUES):
        sentiment = 'negative'
    elif _has_any(text, POSITIVE_CUES):
        sentiment = 'positive'
    else:
        sentiment = 'neutral'
    summary = (message or '')[:SUMMARY_LENGTH]
    if len(message or '') > SUMMARY_LENGTH:
        summary += '...'
    return {
        'sentiment': sentiment,
        'summary': summary,
        'urgency_score': URGENT_SCORE if _has_any(text, URGENT_CUES) else DEFAULT_SCORE,
        'recommended_action': RECOMMENDED_ACTION,
    }
