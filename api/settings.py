"""FastAPI dependency exposing the AppConfig the app was created with."""

from fastapi import Request

from utils.config import AppConfig


def get_config(request: Request) -> AppConfig:
    """Return ``app.state.config``, falling back to the environment."""
    cfg = getattr(request.app.state, "config", None)
    if cfg is None:
        cfg = AppConfig.from_env()
        request.app.state.config = cfg
    return cfg
