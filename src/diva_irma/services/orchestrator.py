"""Lifecycle of IRMA disclosure, signature and issuance sessions."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from diva_irma.adapters.irma_client import IrmaApiClient
from diva_irma.domain.errors import SessionStartError, StatusPollError
from diva_irma.domain.sessions import (
    SERVER_CANCELLED,
    SERVER_DONE,
    SERVER_NOT_FOUND,
    TERMINAL_STATUSES,
    Completion,
    KindProfile,
    LocalStatus,
    RemoteSessionRecord,
    SessionKind,
    SessionStart,
    SessionStatus,
)
from diva_irma.services.proofs import ProofService
from diva_irma.services.state import Keyspace, StateStore
from diva_irma.services.tokens import TokenCodec

_logger = logging.getLogger(__name__)

PollFailurePolicy = Callable[[StatusPollError], str]


def not_found_on_poll_failure(error: StatusPollError) -> str:
    """Treat a failed status poll as a session the server no longer knows.

    The API server answers expired sessions with an error, so every poll
    failure is mapped to NOT_FOUND. A transient outage therefore aborts a
    session that may still be valid on the server.
    """
    _logger.warning("Status poll failed, treating session as not found: %s", error)
    return SERVER_NOT_FOUND


def attribute_to_content(attribute: str, label: str) -> list[dict[str, object]]:
    """Build a single disjunction asking for one attribute."""
    return [{"label": label, "attributes": [attribute]}]


def generate_disclosure_content(
    attributes: str | list[dict[str, object]], label: str | None = None
) -> list[dict[str, object]]:
    """Return a content list from an attribute identifier or a full list."""
    if isinstance(attributes, str):
        return attribute_to_content(attributes, label or attributes)
    return attributes


@dataclass
class SessionOrchestrator:
    """Starts IRMA sessions and reconciles their local and remote status.

    Local state lives in the injected ``StateStore``; the IRMA API server is
    the authority on whether a session finished. Store writes are
    last-write-wins and concurrent reconciles of one session are not
    serialized, so two pollers may both fetch the same result.
    """

    client: IrmaApiClient
    codec: TokenCodec
    store: StateStore
    proof_service: ProofService
    profiles: dict[SessionKind, KindProfile]
    api_server_url: str
    store_disclosure_jwt: bool = False
    poll_failure_policy: PollFailurePolicy = not_found_on_poll_failure

    async def start_session(
        self,
        kind: SessionKind,
        request: dict[str, object],
        callback_data: str | None = None,
    ) -> SessionStart:
        """Sign and submit a session request, then record it as PENDING."""
        profile = self.profiles[kind]
        body: dict[str, object] = {}
        if callback_data is not None:
            body["data"] = callback_data
        body["validity"] = profile.validity
        body["timeout"] = profile.timeout
        body["request"] = request
        token = self.codec.sign_request(profile, body)

        try:
            qr_content = await self.client.start_session(profile.endpoint, token)
        except (httpx.HTTPError, ValueError) as exc:
            raise SessionStartError(f"Error starting IRMA session: {exc}") from exc
        irma_session_id = qr_content.get("u") if isinstance(qr_content, dict) else None
        if not isinstance(irma_session_id, str) or not irma_session_id:
            raise SessionStartError(
                "Error starting IRMA session: response has no session id"
            )

        record = RemoteSessionRecord(
            irma_session_id=irma_session_id,
            kind=kind,
            status=LocalStatus.PENDING,
            callback_data=callback_data,
        )
        self.store.set(Keyspace.IRMA, irma_session_id, record.to_json())
        _logger.info("Started %s session %s", kind.value.lower(), irma_session_id)
        return SessionStart(
            irma_session_id=irma_session_id,
            qr_content={
                **qr_content,
                "u": f"{self.api_server_url}{profile.endpoint}/{irma_session_id}",
            },
        )

    async def start_disclosure_session(
        self,
        attributes: str | list[dict[str, object]],
        label: str | None = None,
        diva_session_id: str | None = None,
    ) -> SessionStart:
        """Ask the user to disclose attributes into a DIVA session."""
        content = generate_disclosure_content(attributes, label)
        return await self.start_session(
            SessionKind.DISCLOSURE, {"content": content}, diva_session_id
        )

    async def start_signature_session(
        self,
        attributes: str | list[dict[str, object]],
        label: str | None,
        message: str,
        diva_session_id: str | None = None,
    ) -> SessionStart:
        """Ask the user to sign a message with attributes."""
        content = generate_disclosure_content(attributes, label)
        request = {"message": message, "messageType": "STRING", "content": content}
        return await self.start_session(SessionKind.SIGNATURE, request, diva_session_id)

    async def start_issue_session(
        self,
        credentials: list[dict[str, object]],
        attributes: str | list[dict[str, object]] | None = None,
        label: str | None = None,
    ) -> SessionStart:
        """Issue credentials, optionally after a disclosure."""
        disclose = (
            generate_disclosure_content(attributes, label)
            if attributes is not None
            else None
        )
        return await self.start_session(
            SessionKind.ISSUANCE, {"credentials": credentials, "disclose": disclose}
        )

    def get_record(self, kind: SessionKind, irma_session_id: str) -> RemoteSessionRecord:
        """Return the local record; unknown sessions read as PENDING."""
        raw = self.store.get(Keyspace.IRMA, irma_session_id)
        return RemoteSessionRecord.from_json(irma_session_id, kind, raw)

    async def reconcile(self, kind: SessionKind, irma_session_id: str) -> SessionStatus:
        """Merge local and server status, completing the session when DONE."""
        record = self.get_record(kind, irma_session_id)
        if record.status in TERMINAL_STATUSES:
            return SessionStatus(kind=kind, status=record.status)

        server_status = await self._poll_status(kind, irma_session_id)
        if server_status == SERVER_DONE:
            completion = await self.complete(kind, irma_session_id)
            self._save_status(record, LocalStatus.COMPLETED)
            return SessionStatus(
                kind=kind,
                status=LocalStatus.COMPLETED,
                server_status=server_status,
                completion=completion,
            )
        if server_status in {SERVER_CANCELLED, SERVER_NOT_FOUND}:
            self._save_status(record, LocalStatus.ABORTED)
            return SessionStatus(
                kind=kind, status=LocalStatus.ABORTED, server_status=server_status
            )
        return SessionStatus(
            kind=kind, status=LocalStatus.PENDING, server_status=server_status
        )

    async def complete(self, kind: SessionKind, irma_session_id: str) -> Completion:
        """Fetch, verify and store the result of a finished session."""
        profile = self.profiles[kind]
        if profile.result_path is None or profile.verify is None:
            return Completion()

        token = await self.client.get_result(
            profile.endpoint, irma_session_id, profile.result_path
        )
        if kind is SessionKind.SIGNATURE:
            claims = self.codec.verify_signature(token, profile.verify)
        else:
            claims = self.codec.verify(token, profile.verify)

        proof = dict(claims)
        if kind is SessionKind.DISCLOSURE and self.store_disclosure_jwt:
            proof["jwt"] = token
        if proof.get("jti"):
            self.proof_service.add_proof(proof, irma_session_id)
        elif kind is SessionKind.DISCLOSURE:
            _logger.warning(
                "Disclosure proof %s is not bound to a DIVA session", irma_session_id
            )

        proof_status = claims.get("status")
        attributes = claims.get("attributes")
        if kind is SessionKind.SIGNATURE:
            message = claims.get("message")
            return Completion(
                proof_status=str(proof_status) if proof_status is not None else None,
                attributes=attributes if isinstance(attributes, dict) else None,
                message=str(message) if message is not None else None,
                jwt=token,
            )
        return Completion(
            proof_status=str(proof_status) if proof_status is not None else None,
            proof=proof,
            attributes=attributes if isinstance(attributes, dict) else None,
        )

    async def _poll_status(self, kind: SessionKind, irma_session_id: str) -> str:
        endpoint = self.profiles[kind].endpoint
        try:
            return await self.client.get_status(endpoint, irma_session_id)
        except httpx.HTTPError as exc:
            error = StatusPollError(
                f"Could not poll status of {kind.value.lower()} session "
                f"{irma_session_id}: {exc}"
            )
            error.__cause__ = exc
            return self.poll_failure_policy(error)

    def _save_status(self, record: RemoteSessionRecord, status: LocalStatus) -> None:
        updated = RemoteSessionRecord(
            irma_session_id=record.irma_session_id,
            kind=record.kind,
            status=status,
            callback_data=record.callback_data,
        )
        self.store.set(Keyspace.IRMA, record.irma_session_id, updated.to_json())
        _logger.info(
            "IRMA session %s is now %s", record.irma_session_id, status.value
        )
