from typing import Optional

from fastapi import FastAPI

from .config import Settings
from .logging_config import setup_logging
from .routers.goals import get_settings, router as goals_router


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the service; logging follows ``settings`` (``GOALPLAN_CONFIG`` by default)."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)

    service = FastAPI(title="Goal Plan Service", version="0.1.0")

    @service.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    service.include_router(goals_router)
    return service


app = create_app()
