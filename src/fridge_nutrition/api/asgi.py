"""ASGI entrypoint for the fridge nutrition API."""

from fridge_nutrition.api.app import create_app
from fridge_nutrition.containers import build_container

app = create_app(build_container())
