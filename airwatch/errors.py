"""Error taxonomy for the refresh pipeline and read path."""


class AirwatchError(Exception):
    """Base class for all airwatch errors."""

    def __init__(self, message: str, target: str | None = None):
        super().__init__(message)
        self.target = target


class FetchUnavailable(AirwatchError):
    """Upstream fetch failed, timed out, or answered with an error status."""

    def __init__(self, message: str, target: str | None = None, status_code: int | None = None):
        super().__init__(message, target)
        self.status_code = status_code


class MalformedPayload(AirwatchError):
    """Fetch succeeded but required fields are missing or unparseable."""


class NotConfigured(AirwatchError):
    """Target has no known upstream station identifier."""


class WriteFailure(AirwatchError):
    """Appending a snapshot to the store failed."""


class DataUnavailable(AirwatchError):
    """No cached or freshly fetched data could be produced for a target."""

    def __init__(self, target: str, kind: str):
        super().__init__(f"No {kind} data available for {target}.", target)
        self.kind = kind
