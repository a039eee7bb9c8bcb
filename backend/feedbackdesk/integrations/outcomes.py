"""Per-destination results of a best-effort fan-out.

A fan-out (sheet append, chat notification, field push, row delete) reaches the
owning department and, when different, the oversight department. Each attempt
produces one ``DeliveryOutcome``; ``FanoutResult.summary`` folds them into
``synced`` / ``partial`` / ``store_only`` so callers can tell the cases apart.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

OK = 'ok'
SKIPPED = 'skipped'      # destination reachable, nothing to do (e.g. ID not in sheet yet)
FAILED = 'failed'
DISABLED = 'disabled'    # integration not configured for the department

SUMMARY_SYNCED = 'synced'
SUMMARY_PARTIAL = 'partial'
SUMMARY_STORE_ONLY = 'store_only'


@dataclass
class DeliveryOutcome:
    integration: str
    department: str
    status: str
    detail: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def attempted(self) -> bool:
        return self.status != DISABLED

    def to_dict(self):
        out = {'integration': self.integration, 'department': self.department, 'status': self.status}
        if self.detail:
            out['detail'] = self.detail
        if self.data:
            out['data'] = self.data
        return out


@dataclass
class FanoutResult:
    outcomes: List[DeliveryOutcome] = field(default_factory=list)

    def add(self, outcome: DeliveryOutcome) -> DeliveryOutcome:
        self.outcomes.append(outcome)
        return outcome

    def extend(self, other: 'FanoutResult') -> 'FanoutResult':
        self.outcomes.extend(other.outcomes)
        return self

    @property
    def summary(self) -> str:
        attempted = [o for o in self.outcomes if o.attempted]
        failed = [o for o in attempted if o.status == FAILED]
        if not attempted or len(failed) == len(attempted):
            return SUMMARY_STORE_ONLY
        if failed:
            return SUMMARY_PARTIAL
        return SUMMARY_SYNCED

    def by_integration(self, integration: str) -> List[DeliveryOutcome]:
        return [o for o in self.outcomes if o.integration == integration]

    def to_dict(self):
        return {'summary': self.summary, 'outcomes': [o.to_dict() for o in self.outcomes]}
