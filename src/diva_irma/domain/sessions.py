"""Domain models for IRMA sessions."""

from dataclasses import dataclass
from enum import StrEnum


class SessionKind(StrEnum):
    """Kinds of IRMA sessions a relying party can start."""

    DISCLOSURE = "DISCLOSURE"
    SIGNATURE = "SIGNATURE"
    ISSUANCE = "ISSUANCE"


class LocalStatus(StrEnum):
    """Locally tracked status of an IRMA session."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"


TERMINAL_STATUSES = frozenset({LocalStatus.COMPLETED, LocalStatus.ABORTED})

SERVER_DONE = "DONE"
SERVER_CANCELLED = "CANCELLED"
SERVER_NOT_FOUND = "NOT_FOUND"

PROOF_VALID = "VALID"
NO_PROOF_STATUS = "NO_PROOF_STATUS"


@dataclass(frozen=True)
class SigningOptions:
    """JWT options for outgoing session requests."""

    algorithm: str
    issuer: str
    subject: str


@dataclass(frozen=True)
class VerifyOptions:
    """JWT options for results returned by the IRMA API server."""

    algorithm: str
    subject: str


@dataclass(frozen=True)
class KindProfile:
    """Everything that differs between session kinds."""

    kind: SessionKind
    endpoint: str
    request_field: str
    signing: SigningOptions
    verify: VerifyOptions | None
    result_path: str | None
    validity: int
    timeout: int


@dataclass(frozen=True)
class RemoteSessionRecord:
    """Local bookkeeping for a session on the IRMA API server."""

    irma_session_id: str
    kind: SessionKind
    status: LocalStatus
    callback_data: str | None = None

    def to_json(self) -> dict[str, object]:
        return {
            "status": self.status.value,
            "kind": self.kind.value,
            "callback_data": self.callback_data,
        }

    @classmethod
    def from_json(
        cls, irma_session_id: str, kind: SessionKind, raw: object
    ) -> "RemoteSessionRecord":
        """Build a record from stored JSON; missing data reads as PENDING."""
        if not isinstance(raw, dict) or "status" not in raw:
            return cls(irma_session_id, kind, LocalStatus.PENDING)
        return cls(
            irma_session_id=irma_session_id,
            kind=SessionKind(raw.get("kind", kind)),
            status=LocalStatus(raw["status"]),
            callback_data=raw.get("callback_data"),
        )


@dataclass(frozen=True)
class SessionStart:
    """Result of starting a session: its id and the QR payload to render."""

    irma_session_id: str
    qr_content: dict[str, object]


@dataclass(frozen=True)
class Completion:
    """Outcome of retrieving and verifying a session result."""

    proof_status: str | None = None
    proof: dict[str, object] | None = None
    attributes: dict[str, object] | None = None
    message: str | None = None
    jwt: str | None = None


@dataclass(frozen=True)
class SessionStatus:
    """Reconciled status of a session."""

    kind: SessionKind
    status: LocalStatus
    server_status: str | None = None
    completion: Completion | None = None

    def as_dict(self) -> dict[str, object]:
        """Render the status the way HTTP callers receive it."""
        payload: dict[str, object] = {"status": self.status.value}
        if self.server_status is not None:
            payload["serverStatus"] = self.server_status
        completion = self.completion
        if completion is None:
            return payload
        if completion.proof_status is not None:
            payload["proofStatus"] = completion.proof_status
        if self.kind is SessionKind.DISCLOSURE and completion.proof is not None:
            payload["disclosureProofResult"] = completion.proof
        if completion.attributes is not None:
            payload["attributes"] = completion.attributes
        if completion.message is not None:
            payload["message"] = completion.message
        if completion.jwt is not None:
            payload["jwt"] = completion.jwt
        return payload
