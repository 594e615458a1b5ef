"""Error types raised by the DIVA session layer."""


class DivaError(Exception):
    """Base class for DIVA errors."""


class SessionStartError(DivaError):
    """Raised when the IRMA API server does not accept a session request."""


class VerificationError(DivaError):
    """Raised when a proof or signature JWT fails verification."""


class ParseError(VerificationError):
    """Raised when a signature payload is not valid JSON."""


class StatusPollError(DivaError):
    """Raised when the IRMA API server status endpoint cannot be reached."""


class MissingAttributesError(DivaError):
    """Raised when a DIVA session lacks required attributes."""

    def __init__(self, missing: list[str], required: list[str]) -> None:
        self.missing = missing
        self.required = required
        super().__init__(f"You are missing attributes: [{','.join(missing)}]")
