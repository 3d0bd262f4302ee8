"""Error taxonomy shared by the clients, the store and the polling jobs.

Per-item failures inside a job are caught and counted; these types let the
job (and the logs) tell a misconfiguration from an upstream outage.
"""


class PairwatchError(Exception):
    """Base exception for all service errors."""


class ConfigurationError(PairwatchError):
    """Raised when a required credential or setting is missing or a placeholder."""


class UpstreamHttpError(PairwatchError):
    """Raised on a non-2xx response or a transport failure from an external API.

    ``status`` is None when no response was received at all.
    """

    def __init__(self, service: str, status: int | None, body: str) -> None:
        self.service = service
        self.status = status
        self.body = body
        detail = f"status {status}" if status is not None else "no response"
        super().__init__(f"{service} request failed with {detail}: {body[:300]}")


class UpstreamApiError(PairwatchError):
    """Raised when a 2xx envelope carries a non-zero application error code."""

    def __init__(self, service: str, code: str, message: str) -> None:
        self.service = service
        self.code = code
        self.message = message
        super().__init__(f"{service} returned an error: {message} (code: {code})")


class DataShapeError(PairwatchError):
    """Raised when an upstream payload does not have the expected structure."""


class StoreUnavailableError(PairwatchError):
    """Raised when the document store cannot be reached or queried."""
