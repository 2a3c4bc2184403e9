# agenda_core/webapp/app.py
from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .api import router as api_router
from .container import DEFAULT_STATE_PATH, ServiceContainer
from ..config import Config, DEFAULT_CONFIG_PATH

logger = logging.getLogger("agenda_webapp")


def create_app(
    *,
    config_path: str | None = None,
    state_path: str | None = str(DEFAULT_STATE_PATH),
    auto_save: bool = True,
    config: Config | None = None,
) -> FastAPI:
    """Cria a aplicacao FastAPI; state_path=None mantem o estado so em memoria."""
    container = ServiceContainer(
        config_path=config_path or str(DEFAULT_CONFIG_PATH),
        state_path=state_path,
        auto_save=auto_save,
        config=config,
    )
    logging.basicConfig(
        level=container.config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("[INIT] Config: %s | Estado: %s | Auto save: %s",
                container.config_path, container.state_path or "(memoria)", container.settings.auto_save)

    app = FastAPI(
        title="Agenda Core API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        description="API para agendamento de oficinas, educadores e turmas",
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time
        logger.info("[HTTP] %s %s -> %d (%.3fs)", request.method, request.url.path, response.status_code, duration)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.container = container
    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "message": "Agenda Core API esta funcionando"}

    logger.info("[INIT] Rotas configuradas: /api/*")
    return app
