"""FastAPI dependencies for DIVA sessions and attribute gating."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING
from uuid import uuid4

from fastapi import Depends, Request, Response

if TYPE_CHECKING:
    from diva_irma.containers import AppContainer


def get_diva_session_id(request: Request, response: Response) -> str:
    """Return the DIVA session id from the cookie, issuing one if absent."""
    container: AppContainer = request.app.state.container
    cookie_name = container.settings.cookie_name
    diva_session_id = request.cookies.get(cookie_name)
    if not diva_session_id:
        diva_session_id = str(uuid4())
        set_session_cookie(response, cookie_name, diva_session_id)
    return diva_session_id


def set_session_cookie(response: Response, cookie_name: str, value: str) -> None:
    """Attach the DIVA session cookie to a response."""
    response.set_cookie(cookie_name, value, httponly=True, samesite="strict")


def require_attributes(
    required: list[str],
) -> Callable[[Request, str], Awaitable[None]]:
    """Build a dependency that denies access unless all attributes are present.

    A denied request raises ``MissingAttributesError``; ``create_app``
    renders it as a 401 response.
    """

    async def dependency(
        request: Request,
        diva_session_id: str = Depends(get_diva_session_id),
    ) -> None:
        container: AppContainer = request.app.state.container
        container.proof_service.require_attributes(diva_session_id, required)

    return dependency
