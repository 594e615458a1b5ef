"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from diva_irma.adapters.irma_client import HttpxIrmaApiClient
from diva_irma.adapters.supabase_state_store import SupabaseStateStore
from diva_irma.config import Settings
from diva_irma.services.orchestrator import SessionOrchestrator
from diva_irma.services.profiles import build_profiles
from diva_irma.services.proofs import ProofService
from diva_irma.services.state import InMemoryStateStore, StateStore
from diva_irma.services.tokens import TokenCodec


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: StateStore
    proof_service: ProofService
    orchestrator: SessionOrchestrator
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings) -> StateStore:
    """Create the configured state store backend."""
    if settings.state_backend == "memory":
        return InMemoryStateStore()
    if settings.state_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError("Supabase state backend requires url and service key")
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseStateStore(client, table=settings.supabase_state_table)
    raise ValueError(f"Unknown state backend: {settings.state_backend}")


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    store = build_store(resolved_settings)
    proof_service = ProofService(store)
    irma_client = HttpxIrmaApiClient.create(
        resolved_settings.irma_api_server_url,
        timeout=resolved_settings.http_timeout_seconds,
    )
    codec = TokenCodec(
        signing_key=resolved_settings.api_key,
        public_key=resolved_settings.irma_api_server_public_key,
    )
    orchestrator = SessionOrchestrator(
        client=irma_client,
        codec=codec,
        store=store,
        proof_service=proof_service,
        profiles=build_profiles(resolved_settings),
        api_server_url=irma_client.base_url,
        store_disclosure_jwt=resolved_settings.store_disclosure_jwt,
    )

    async def close_resources() -> None:
        await irma_client.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        proof_service=proof_service,
        orchestrator=orchestrator,
        close_resources=close_resources,
    )
