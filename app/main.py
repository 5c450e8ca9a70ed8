from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core import state
from core.config import Settings
from services.lesson_store import LessonStore
from api.routes import health, lessons, quiz, zones

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- startup ---
        state.settings = settings
        with state.store_lock:
            state.store = LessonStore(settings.LESSONS_PATH, settings.DRIVE_THUMBNAIL_SIZE)
        logger.info("Serving lessons from %s", settings.LESSONS_PATH)
        if not settings.admin_enabled:
            logger.warning("ADMIN_PASSWORD is not set; admin console disabled")
        try:
            yield
        finally:
            # --- shutdown ---
            with state.sessions_lock:
                state.quiz_sessions.clear()
            state.store = None

    app = FastAPI(title="Anatomy Lab API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(lessons.router)
    app.include_router(quiz.router)
    app.include_router(zones.router)
    app.include_router(health.router)

    return app


app = create_app()
