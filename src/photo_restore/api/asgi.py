"""Module-level ASGI app for ``uvicorn photo_restore.api.asgi:app``."""

from photo_restore.api.app import create_app
from photo_restore.config import Settings
from photo_restore.containers import build_container

settings = Settings()
app = create_app(build_container(settings))
