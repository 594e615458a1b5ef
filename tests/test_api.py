"""Tests for the HTTP API."""

import httpx
from fastapi import Depends
from fastapi.testclient import TestClient

from diva_irma.api.app import create_app
from diva_irma.api.dependencies import require_attributes
from tests.conftest import FakeIrmaApiClient, KeyPair, disclosure_result

EMAIL = "pbdf.pbdf.email.email"


def test_health(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_disclosure_flow_adds_attributes_to_session(
    container, irma_client: FakeIrmaApiClient, server_keys: KeyPair
) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/api/start-disclosure-session",
        json={"attribute": EMAIL, "attributesLabel": "Email"},
    )
    assert response.status_code == 200
    irma_id = response.json()["irmaSessionId"]
    assert response.json()["qrContent"]["u"].endswith(f"/api/v2/verification/{irma_id}")
    diva_id = client.cookies.get("diva-session")
    assert diva_id

    pending = client.get("/api/disclosure-status", params={"irmaSessionId": irma_id})
    assert pending.json() == {"status": "PENDING", "serverStatus": "INITIALIZED"}

    irma_client.statuses[irma_id] = "DONE"
    irma_client.results[irma_id] = disclosure_result(
        server_keys, diva_id, {EMAIL: "alice@example.com"}
    )
    done = client.get("/api/disclosure-status", params={"irmaSessionId": irma_id})
    assert done.status_code == 200
    assert done.json()["status"] == "COMPLETED"
    assert done.json()["proofStatus"] == "VALID"

    session = client.get("/api/session")
    assert session.json() == {
        "sessionId": diva_id,
        "attributes": {EMAIL: ["alice@example.com"]},
    }
    proof = client.get("/api/proof-status", params={"irmaSessionId": irma_id})
    assert proof.json() == {"proofStatus": "VALID"}


def test_start_session_requires_attributes(container) -> None:
    client = TestClient(create_app(container))

    response = client.post("/api/start-disclosure-session", json={})

    assert response.status_code == 422


def test_start_session_failure_returns_bad_gateway(
    container, irma_client: FakeIrmaApiClient
) -> None:
    irma_client.start_error = httpx.ConnectError("refused")
    client = TestClient(create_app(container))

    response = client.post(
        "/api/start-signature-session",
        json={"attribute": EMAIL, "attributesLabel": "Email", "message": "Hi"},
    )

    assert response.status_code == 502


def test_invalid_proof_returns_bad_gateway(
    container, irma_client: FakeIrmaApiClient, client_keys: KeyPair
) -> None:
    client = TestClient(create_app(container))
    started = client.post("/api/start-disclosure-session", json={"attribute": EMAIL})
    irma_id = started.json()["irmaSessionId"]
    irma_client.statuses[irma_id] = "DONE"
    irma_client.results[irma_id] = disclosure_result(client_keys, "x", {EMAIL: "x"})

    response = client.get("/api/disclosure-status", params={"irmaSessionId": irma_id})

    assert response.status_code == 502
    retry = client.get("/api/disclosure-status", params={"irmaSessionId": irma_id})
    assert retry.status_code == 502


def test_issue_flow(container, irma_client: FakeIrmaApiClient) -> None:
    client = TestClient(create_app(container))

    started = client.post(
        "/api/start-issue-session",
        json={"credentials": [{"credential": "pbdf.pbdf.email"}]},
    )
    irma_id = started.json()["irmaSessionId"]
    irma_client.statuses[irma_id] = "CANCELLED"

    response = client.get("/api/issue-status", params={"irmaSessionId": irma_id})

    assert response.json() == {"status": "ABORTED", "serverStatus": "CANCELLED"}


def test_require_attributes_dependency(container) -> None:
    app = create_app(container)

    @app.get("/protected", dependencies=[Depends(require_attributes(["age"]))])
    async def protected() -> dict[str, str]:
        return {"status": "ok"}

    client = TestClient(app)
    client.cookies.set("diva-session", "diva-1")

    denied = client.get("/protected")
    assert denied.status_code == 401
    assert denied.json() == {
        "success": False,
        "requiredAttributes": ["age"],
        "missingAttributes": ["age"],
        "message": "You are missing attributes: [age]",
    }

    container.proof_service.add_proof(
        {"jti": "diva-1", "status": "VALID", "attributes": {"age": "18"}}, "irma-1"
    )
    allowed = client.get("/protected")
    assert allowed.status_code == 200


def test_deauthenticate_drops_proofs(container) -> None:
    client = TestClient(create_app(container))
    client.cookies.set("diva-session", "diva-1")
    container.proof_service.add_proof(
        {"jti": "diva-1", "status": "VALID", "attributes": {"age": "18"}}, "irma-1"
    )

    response = client.get("/api/deauthenticate")

    assert response.status_code == 200
    assert response.json()["sessionId"] != "diva-1"
    assert container.proof_service.get_attributes("diva-1") == {}
