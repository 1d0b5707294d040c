"""ASGI entrypoint for the nutrient snapshot API."""

from nutrient_snapshots.api.app import create_app
from nutrient_snapshots.containers import build_container

app = create_app(build_container())
