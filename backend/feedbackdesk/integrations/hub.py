from __future__ import annotations
import logging
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .bitrix import BitrixTracker
from .google_auth import ServiceAccountTokenProvider
from .sheets import SheetsClient, SCOPE_READONLY, SCOPE_READWRITE
from .telegram import TelegramNotifier

logger = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)


class IntegrationHub:
    """Holds the shared HTTP session and token cache; builds per-department clients.

    Clients are built from a department's settings row on demand and return None
    when that integration is not configured for the department.
    """

    def __init__(self, session: requests.Session, *, oversight_department: str,
                 sheets_base: str, telegram_base: str, token_url: str,
                 timeout: float = 10.0, tracker_session: Optional[requests.Session] = None,
                 tracker_workers: int = 4):
        self.session = session
        self.tracker_session = tracker_session or session
        self.oversight_department = oversight_department
        self.sheets_base = sheets_base
        self.telegram_base = telegram_base
        self.timeout = timeout
        self.tracker_workers = max(1, tracker_workers)
        self.tokens = ServiceAccountTokenProvider(session, token_url, timeout)

    @classmethod
    def from_config(cls, config, http_session=None) -> 'IntegrationHub':
        if http_session is not None:
            session = tracker_session = http_session
        else:
            session = requests.Session()
            tracker_session = requests.Session()
            retry = Retry(
                total=config['TRACKER_RETRY_TOTAL'],
                backoff_factor=config['TRACKER_RETRY_BACKOFF'],
                status_forcelist=RETRY_STATUSES,
                allowed_methods=frozenset(['GET']),
                raise_on_status=False,
            )
            tracker_session.mount('https://', HTTPAdapter(max_retries=retry))
            tracker_session.mount('http://', HTTPAdapter(max_retries=retry))
        return cls(
            session,
            oversight_department=config['OVERSIGHT_DEPARTMENT'],
            sheets_base=config['SHEETS_API_BASE'],
            telegram_base=config['TELEGRAM_API_BASE'],
            token_url=config['GOOGLE_TOKEN_URL'],
            timeout=config['HTTP_TIMEOUT_SECONDS'],
            tracker_session=tracker_session,
            tracker_workers=config['TRACKER_SYNC_WORKERS'],
        )

    def fanout_departments(self, department: str) -> List[str]:
        """Owning department first, then the oversight department if different."""
        if department == self.oversight_department:
            return [department]
        return [department, self.oversight_department]

    def sheets(self, settings, readonly: bool = False) -> Optional[SheetsClient]:
        if settings is None or not settings.google_sheets_id:
            return None
        # Missing service-account fields surface as CredentialsError on first call
        return SheetsClient(
            self.session,
            self.sheets_base,
            settings.google_sheets_id,
            settings.google_service_account_email or '',
            settings.google_private_key or '',
            self.tokens,
            scope=SCOPE_READONLY if readonly else SCOPE_READWRITE,
            timeout=self.timeout,
        )

    def notifier(self) -> TelegramNotifier:
        return TelegramNotifier(self.session, self.telegram_base, self.timeout)

    def tracker(self, settings, polling: bool = False) -> Optional[BitrixTracker]:
        if settings is None or not settings.bitrix_webhook_url:
            return None
        session = self.tracker_session if polling else self.session
        return BitrixTracker(session, settings.bitrix_webhook_url, self.timeout)
