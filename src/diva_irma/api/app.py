"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import uuid4

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse

from diva_irma.api.dependencies import get_diva_session_id, set_session_cookie
from diva_irma.api.models import (
    DisclosureSessionRequest,
    IssueSessionRequest,
    SignatureSessionRequest,
)
from diva_irma.app_logging import configure_logging
from diva_irma.containers import AppContainer
from diva_irma.domain.errors import (
    MissingAttributesError,
    SessionStartError,
    VerificationError,
)
from diva_irma.domain.sessions import SessionKind, SessionStart


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(MissingAttributesError)
    async def missing_attributes(
        request: Request, exc: MissingAttributesError
    ) -> JSONResponse:
        """Deny access with the missing attributes in the response body."""
        logger.info("Denied %s: missing attributes %s", request.url.path, exc.missing)
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "success": False,
                "requiredAttributes": exc.required,
                "missingAttributes": exc.missing,
                "message": str(exc),
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/api/session")
    async def session_info(
        request: Request, diva_session_id: str = Depends(get_diva_session_id)
    ) -> dict[str, object]:
        """Return the DIVA session id with its disclosed attributes."""
        state_container: AppContainer = request.app.state.container
        return {
            "sessionId": diva_session_id,
            "attributes": state_container.proof_service.get_attributes(
                diva_session_id
            ),
        }

    @app.get("/api/deauthenticate")
    async def deauthenticate(
        request: Request,
        response: Response,
        diva_session_id: str = Depends(get_diva_session_id),
    ) -> dict[str, object]:
        """Drop all proofs and start over with a fresh DIVA session."""
        state_container: AppContainer = request.app.state.container
        state_container.proof_service.remove_session(diva_session_id)
        new_session_id = str(uuid4())
        set_session_cookie(
            response, state_container.settings.cookie_name, new_session_id
        )
        return {"sessionId": new_session_id, "attributes": {}}

    @app.post("/api/start-disclosure-session")
    async def start_disclosure_session(
        body: DisclosureSessionRequest,
        request: Request,
        diva_session_id: str = Depends(get_diva_session_id),
    ) -> dict[str, object]:
        """Start a disclosure session bound to the caller's DIVA session."""
        state_container: AppContainer = request.app.state.container
        try:
            started = await state_container.orchestrator.start_disclosure_session(
                body.requested(), body.attributes_label, diva_session_id
            )
        except SessionStartError as exc:
            logger.exception("Failed to start disclosure session")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
            ) from exc
        return _session_start_payload(started)

    @app.post("/api/start-signature-session")
    async def start_signature_session(
        body: SignatureSessionRequest,
        request: Request,
        diva_session_id: str = Depends(get_diva_session_id),
    ) -> dict[str, object]:
        """Start a signature session bound to the caller's DIVA session."""
        state_container: AppContainer = request.app.state.container
        try:
            started = await state_container.orchestrator.start_signature_session(
                body.requested(), body.attributes_label, body.message, diva_session_id
            )
        except SessionStartError as exc:
            logger.exception("Failed to start signature session")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
            ) from exc
        return _session_start_payload(started)

    @app.post("/api/start-issue-session")
    async def start_issue_session(
        body: IssueSessionRequest, request: Request
    ) -> dict[str, object]:
        """Start an issuance session."""
        state_container: AppContainer = request.app.state.container
        try:
            started = await state_container.orchestrator.start_issue_session(
                body.credentials, body.requested(), body.attributes_label
            )
        except SessionStartError as exc:
            logger.exception("Failed to start issue session")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
            ) from exc
        return _session_start_payload(started)

    async def _status(
        state_container: AppContainer, kind: SessionKind, irma_session_id: str
    ) -> dict[str, object]:
        try:
            result = await state_container.orchestrator.reconcile(
                kind, irma_session_id
            )
        except (VerificationError, httpx.HTTPError) as exc:
            logger.exception(
                "Failed to complete %s session %s",
                kind.value.lower(),
                irma_session_id,
            )
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
            ) from exc
        return result.as_dict()

    @app.get("/api/disclosure-status")
    async def disclosure_status(
        request: Request, irma_session_id: str = Query(alias="irmaSessionId")
    ) -> dict[str, object]:
        """Poll a disclosure session."""
        return await _status(
            request.app.state.container, SessionKind.DISCLOSURE, irma_session_id
        )

    @app.get("/api/signature-status")
    async def signature_status(
        request: Request, irma_session_id: str = Query(alias="irmaSessionId")
    ) -> dict[str, object]:
        """Poll a signature session."""
        return await _status(
            request.app.state.container, SessionKind.SIGNATURE, irma_session_id
        )

    @app.get("/api/issue-status")
    async def issue_status(
        request: Request, irma_session_id: str = Query(alias="irmaSessionId")
    ) -> dict[str, object]:
        """Poll an issuance session."""
        return await _status(
            request.app.state.container, SessionKind.ISSUANCE, irma_session_id
        )

    @app.get("/api/proof-status")
    async def proof_status(
        request: Request,
        irma_session_id: str = Query(alias="irmaSessionId"),
        diva_session_id: str = Depends(get_diva_session_id),
    ) -> dict[str, str]:
        """Return the status of a proof stored in the caller's DIVA session."""
        state_container: AppContainer = request.app.state.container
        return {
            "proofStatus": state_container.proof_service.get_proof_status(
                diva_session_id, irma_session_id
            )
        }

    return app


def _session_start_payload(started: SessionStart) -> dict[str, object]:
    return {"irmaSessionId": started.irma_session_id, "qrContent": started.qr_content}
