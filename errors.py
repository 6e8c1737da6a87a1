"""Error taxonomy shared by the bill query client, channels and entry point"""


class BillAlertError(Exception):
    """Base class for every failure that aborts a run."""


class ConfigError(BillAlertError):
    """Settings are missing or malformed."""


class AuthError(BillAlertError):
    """
    The token endpoint rejected the client credentials.

    Attributes:
        code: Provider error code (e.g. "invalid_client"), if any.
        description: Provider error description, if any.
    """

    def __init__(self, message: str, code: str | None = None, description: str | None = None):
        super().__init__(message)
        self.code = code
        self.description = description


class BillFetchError(BillAlertError):
    """
    The bill endpoint rejected the request or could not serve the bill.

    Attributes:
        provider_error: The structured error body, if the provider sent one.
    """

    def __init__(self, message: str, provider_error=None):
        super().__init__(message)
        self.provider_error = provider_error


class ChannelSendError(BillAlertError):
    """A notification channel failed to deliver the alert."""


class ResponseDecodeError(BillAlertError):
    """An upstream body matched neither the success nor the error shape."""
