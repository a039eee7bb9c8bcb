"""Integration endpoints and tuning knobs, read from the environment.

Every value can be overridden through ``create_app(config=...)``.
"""
import os

DEFAULT_OVERSIGHT_DEPARTMENT = 'management'


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    try:
        return float(raw) if raw is not None else default
    except ValueError:
        raise ValueError(f'{name} must be a number')


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw is not None else default
    except ValueError:
        raise ValueError(f'{name} must be an int')


def load_integration_config() -> dict:
    return {
        'OVERSIGHT_DEPARTMENT': os.getenv('OVERSIGHT_DEPARTMENT', DEFAULT_OVERSIGHT_DEPARTMENT),
        'HTTP_TIMEOUT_SECONDS': _float('HTTP_TIMEOUT_SECONDS', 10.0),
        'GOOGLE_TOKEN_URL': os.getenv('GOOGLE_TOKEN_URL', 'https://oauth2.googleapis.com/token'),
        'SHEETS_API_BASE': os.getenv('SHEETS_API_BASE', 'https://sheets.googleapis.com/v4/spreadsheets'),
        'TELEGRAM_API_BASE': os.getenv('TELEGRAM_API_BASE', 'https://api.telegram.org'),
        'TRACKER_SYNC_WORKERS': _int('TRACKER_SYNC_WORKERS', 4),
        'TRACKER_RETRY_TOTAL': _int('TRACKER_RETRY_TOTAL', 3),
        'TRACKER_RETRY_BACKOFF': _float('TRACKER_RETRY_BACKOFF', 0.5),
        'CHANGE_FEED_SIZE': _int('CHANGE_FEED_SIZE', 500),
    }
