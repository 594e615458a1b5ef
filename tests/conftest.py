"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from diva_irma.adapters.irma_client import IrmaApiClient
from diva_irma.config import Settings
from diva_irma.containers import AppContainer
from diva_irma.services.orchestrator import SessionOrchestrator
from diva_irma.services.profiles import build_profiles
from diva_irma.services.proofs import ProofService
from diva_irma.services.state import InMemoryStateStore
from diva_irma.services.tokens import TokenCodec


@dataclass(frozen=True)
class KeyPair:
    """PEM encoded RSA key pair."""

    private_pem: str
    public_pem: str


def _generate_key_pair() -> KeyPair:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = (
        key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    return KeyPair(private_pem=private_pem, public_pem=public_pem)


@dataclass
class FakeIrmaApiClient(IrmaApiClient):
    """Fake IRMA API server with scripted statuses and results."""

    statuses: dict[str, str] = field(default_factory=dict)
    results: dict[str, str] = field(default_factory=dict)
    started: list[tuple[str, str]] = field(default_factory=list)
    status_calls: list[tuple[str, str]] = field(default_factory=list)
    result_calls: list[tuple[str, str, str]] = field(default_factory=list)
    start_error: Exception | None = None
    status_error: Exception | None = None

    async def start_session(self, endpoint: str, token: str) -> dict[str, object]:
        if self.start_error is not None:
            raise self.start_error
        self.started.append((endpoint, token))
        return {
            "u": f"irma-{len(self.started)}",
            "v": "2.0",
            "vmax": "2.2",
            "irmaqr": "disclosing",
        }

    async def get_status(self, endpoint: str, session_id: str) -> str:
        self.status_calls.append((endpoint, session_id))
        if self.status_error is not None:
            raise self.status_error
        return self.statuses.get(session_id, "INITIALIZED")

    async def get_result(self, endpoint: str, session_id: str, result_path: str) -> str:
        self.result_calls.append((endpoint, session_id, result_path))
        return self.results[session_id]


def sign_result(server_keys: KeyPair, claims: dict[str, object]) -> str:
    """Sign result claims the way the IRMA API server does."""
    now = int(datetime.now(tz=UTC).timestamp())
    payload = {"iat": now, "exp": now + 300, **claims}
    return jwt.encode(payload, server_keys.private_pem, algorithm="RS256")


def disclosure_result(
    server_keys: KeyPair,
    diva_session_id: str,
    attributes: dict[str, object],
    status: str = "VALID",
) -> str:
    """Build a signed disclosure proof for a DIVA session."""
    return sign_result(
        server_keys,
        {
            "sub": "disclosure_result",
            "jti": diva_session_id,
            "status": status,
            "attributes": attributes,
        },
    )


@pytest.fixture(scope="session")
def server_keys() -> KeyPair:
    return _generate_key_pair()


@pytest.fixture(scope="session")
def client_keys() -> KeyPair:
    return _generate_key_pair()


@pytest.fixture
def settings(server_keys: KeyPair, client_keys: KeyPair) -> Settings:
    return Settings(
        irma_api_server_url="https://irma.example.com",
        irma_api_server_public_key=server_keys.public_pem,
        api_key=client_keys.private_pem,
    )


@pytest.fixture
def irma_client() -> FakeIrmaApiClient:
    return FakeIrmaApiClient()


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def proof_service(store: InMemoryStateStore) -> ProofService:
    return ProofService(store)


@pytest.fixture
def codec(settings: Settings) -> TokenCodec:
    return TokenCodec(
        signing_key=settings.api_key,
        public_key=settings.irma_api_server_public_key,
    )


@pytest.fixture
def orchestrator(
    settings: Settings,
    irma_client: FakeIrmaApiClient,
    codec: TokenCodec,
    store: InMemoryStateStore,
    proof_service: ProofService,
) -> SessionOrchestrator:
    return SessionOrchestrator(
        client=irma_client,
        codec=codec,
        store=store,
        proof_service=proof_service,
        profiles=build_profiles(settings),
        api_server_url=settings.irma_api_server_url,
    )


@pytest.fixture
def container(
    settings: Settings,
    store: InMemoryStateStore,
    proof_service: ProofService,
    orchestrator: SessionOrchestrator,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        store=store,
        proof_service=proof_service,
        orchestrator=orchestrator,
        close_resources=close_resources,
    )
