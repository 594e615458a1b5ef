"""ASGI entrypoint for the DIVA IRMA API."""

from diva_irma.api.app import create_app
from diva_irma.containers import build_container

app = create_app(build_container())
