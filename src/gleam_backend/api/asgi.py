"""ASGI entrypoint for the Gleam backend API."""

from gleam_backend.api.app import create_app
from gleam_backend.containers import build_container

app = create_app(build_container())
