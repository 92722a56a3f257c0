import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from matrisync.config import get_settings
from matrisync.infrastructure.database import Base, SessionLocal, engine, initialize_database
from matrisync.infrastructure.gateway import SqlGateway
from matrisync.infrastructure.notifications import session_publisher
from matrisync.infrastructure.realtime_sessions import SessionRegistry, options_from_settings
from matrisync.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database and session registry, then close every session on shutdown."""

    settings = get_settings()
    initialize_database()
    app.state.session_registry = SessionRegistry(
        SqlGateway(SessionLocal, Base.metadata),
        options=options_from_settings(settings),
        publisher=session_publisher,
    )
    yield
    await app.state.session_registry.close_all()
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="matrisync", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
