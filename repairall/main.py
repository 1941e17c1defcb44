from typing import Optional

from fastapi import FastAPI

from repairall.api.routes import router
from repairall.core.config import Settings, settings as default_settings
from repairall.core.logging import get_logger
from repairall.guide.orchestrator import GuideOrchestrator
from repairall.guide.sessions import SessionRegistry
from repairall.images.stock import StockPhotoClient

log = get_logger("main")


def create_app(s: Optional[Settings] = None) -> FastAPI:
    s = s or default_settings

    app = FastAPI(title="RepairAll Guide API", version="0.1.0")
    app.state.settings = s
    app.state.sessions = SessionRegistry(lambda: GuideOrchestrator.from_settings(s))
    app.state.stock = StockPhotoClient.from_settings(s)
    app.include_router(router)

    if not s.model_ready:
        log.warning("GEMINI_API_KEY missing: guides use the built-in sample plan")
    if not s.auth_configured:
        log.warning("AUTH0_DOMAIN / AUTH0_CLIENT_ID missing: guide endpoints will answer 503")
    return app


app = create_app()
