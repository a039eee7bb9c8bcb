class IntegrationError(Exception):
    """Base class for third-party call failures. Never surfaced to the submitter."""


class CredentialsError(IntegrationError):
    """Missing or malformed credentials, or a rejected token exchange."""


class SheetsError(IntegrationError):
    pass


class NotifierError(IntegrationError):
    pass


class TrackerError(IntegrationError):
    pass
