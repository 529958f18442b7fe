"""ASGI entrypoint for the health scanner API."""

from health_scanner.api.app import create_app
from health_scanner.containers import build_container

app = create_app(build_container())
