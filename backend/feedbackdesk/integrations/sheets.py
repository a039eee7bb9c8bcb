"""Google Sheets mirror of the ticket table.

Each mirrored sheet holds one row per ticket with a fixed 16-column layout; the
ticket ID in column A is the only join key. Rows are located by reading column A
and scanning for an exact string match.
"""
from __future__ import annotations
import logging
import re
from typing import List, Optional, Sequence
from urllib.parse import quote

import requests

from .errors import SheetsError
from .google_auth import ServiceAccountTokenProvider

logger = logging.getLogger(__name__)

SCOPE_READWRITE = 'https://www.googleapis.com/auth/spreadsheets'
SCOPE_READONLY = 'https://www.googleapis.com/auth/spreadsheets.readonly'

COLUMNS = [
    'id', 'created_at', 'role', 'type', 'name', 'contact', 'message', 'object',
    'department', 'status', 'sub_status', 'attachment_url', 'tracker_task_id',
    'deadline', 'urgency_level', 'assignee',
]
FIRST_COLUMN = 'A'
LAST_COLUMN = 'P'
# Cell ranges (start, end column letters) owned by each pushable field
FIELD_COLUMNS = {
    'status': ('J', 'K'),       # status + sub-status are always written together
    'deadline': ('N', 'N'),
    'urgency_level': ('O', 'O'),
    'assignee': ('P', 'P'),
}
STATUS_INDEX = COLUMNS.index('status')
SUB_STATUS_INDEX = COLUMNS.index('sub_status')

_SHEET_URL_RE = re.compile(r'/spreadsheets/d/([a-zA-Z0-9-_]+)')


def extract_spreadsheet_id(value: str) -> str:
    """Accept either a bare spreadsheet id or a full sheet URL."""
    value = (value or '').strip()
    m = _SHEET_URL_RE.search(value)
    if m:
        return m.group(1)
    cleaned = value.split('/')[0].split('?')[0].split('#')[0]
    return cleaned or value


class SheetsClient:
    def __init__(self, session: requests.Session, base_url: str, spreadsheet_id: str,
                 service_account_email: str, private_key: str,
                 token_provider: ServiceAccountTokenProvider,
                 scope: str = SCOPE_READWRITE, timeout: float = 10.0):
        self.session = session
        self.base_url = base_url.rstrip('/')
        self.spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)
        self.service_account_email = service_account_email
        self.private_key = private_key
        self.token_provider = token_provider
        self.scope = scope
        self.timeout = timeout

    # --- low level ---
    def _headers(self):
        token = self.token_provider.token(self.service_account_email, self.private_key, self.scope)
        return {'Authorization': f'Bearer {token}'}

    def _values_url(self, cell_range: str) -> str:
        return f'{self.base_url}/{self.spreadsheet_id}/values/{quote(cell_range)}'

    def _request(self, method: str, url: str, **kwargs):
        try:
            resp = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise SheetsError(f'Sheets API unreachable: {e}') from e
        if not resp.ok:
            raise SheetsError(f'Sheets API error {resp.status_code}: {resp.text[:200]}')
        return resp

    def _json(self, resp):
        try:
            return resp.json()
        except ValueError:
            raise SheetsError(f'Sheets API returned non-JSON response ({resp.status_code})')

    def read_values(self, cell_range: str, major_dimension: str = 'ROWS') -> List[List[str]]:
        resp = self._request('GET', self._values_url(cell_range), params={'majorDimension': major_dimension})
        return self._json(resp).get('values') or []

    def write_values(self, cell_range: str, values: Sequence[Sequence]):
        resp = self._request(
            'PUT', self._values_url(cell_range),
            params={'valueInputOption': 'RAW'},
            json={'values': [list(r) for r in values]},
        )
        return self._json(resp)

    # --- row operations ---
    def find_row(self, ticket_id: str) -> Optional[int]:
        """1-based row index whose column A equals ticket_id, or None."""
        for i, row in enumerate(self.read_values('A:A')):
            if row and row[0] == ticket_id:
                return i + 1
        return None

    def next_empty_row(self) -> int:
        # First row with an empty A cell; a cleared row in the middle gets reused.
        rows = self.read_values('A:A')
        for i, row in enumerate(rows):
            if not row or not str(row[0]).strip():
                return i + 1
        return len(rows) + 1

    def append_row(self, values: Sequence) -> int:
        if len(values) != len(COLUMNS):
            raise ValueError(f'expected {len(COLUMNS)} values, got {len(values)}')
        row = self.next_empty_row()
        self.write_values(f'{FIRST_COLUMN}{row}:{LAST_COLUMN}{row}', [values])
        return row

    def update_field(self, ticket_id: str, field: str, values: Sequence) -> Optional[int]:
        """Write the cells owned by field on the ticket's row.

        Returns the row index, or None when the ticket is not in the sheet yet.
        """
        start, end = FIELD_COLUMNS[field]
        row = self.find_row(ticket_id)
        if row is None:
            return None
        self.write_values(f'{start}{row}:{end}{row}', [values])
        return row

    def sheet_id(self) -> int:
        resp = self._request('GET', f'{self.base_url}/{self.spreadsheet_id}', params={'fields': 'sheets.properties'})
        sheets = self._json(resp).get('sheets') or []
        if not sheets:
            raise SheetsError('Spreadsheet has no sheets')
        return sheets[0]['properties']['sheetId']

    def delete_row(self, ticket_id: str) -> Optional[int]:
        row = self.find_row(ticket_id)
        if row is None:
            return None
        body = {
            'requests': [{
                'deleteDimension': {
                    'range': {
                        'sheetId': self.sheet_id(),
                        'dimension': 'ROWS',
                        'startIndex': row - 1,
                        'endIndex': row,
                    }
                }
            }]
        }
        self._request('POST', f'{self.base_url}/{self.spreadsheet_id}:batchUpdate', json=body)
        return row

    def read_status_rows(self):
        """Yield (ticket_id, status_text, sub_status_text) for every row with an id and a status."""
        for row in self.read_values('A:K'):
            ticket_id = row[0] if row else ''
            status = row[STATUS_INDEX] if len(row) > STATUS_INDEX else ''
            sub_status = row[SUB_STATUS_INDEX] if len(row) > SUB_STATUS_INDEX else ''
            if not ticket_id or not status:
                continue
            yield ticket_id, status, (sub_status or None)
