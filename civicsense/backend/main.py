from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import engine, session_scope
from errors import register_error_handlers
from models import Base
from routes import analytics as analytics_routes
from routes import auth as auth_routes
from services.seed_service import seed_database

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.app_name)

    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    app.include_router(auth_routes.router)
    app.include_router(analytics_routes.router)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup() -> None:
        logger.info("[CONFIG] APP_ENV=%s", settings.env)
        logger.info("[CONFIG] DATABASE_URL=%s", settings.database_url)
        logger.info("[CONFIG] DEFAULT_PERIOD_DAYS=%s", settings.default_period_days)
        if settings.disable_auth:
            logger.warning("[CONFIG] DISABLE_AUTH is on; every request is treated as admin")

        if settings.recreate_db_on_startup:
            Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)

        if settings.seed_sample_data:
            with session_scope() as db:
                seed_database(db, settings.sample_csv_path)

    return app


app = create_app()
