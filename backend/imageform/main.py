import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from imageform.config import Settings, get_settings
from imageform.database import Base, engine
from imageform.routers import drafts, pages, submissions
from imageform.services.drafts import DraftStore
from imageform.services.submissions import SubmissionFeed

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables (if they don't exist)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    # Allow the frontend origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Process-local state: the cached submission list and open drafts
    app.state.settings = settings
    app.state.feed = SubmissionFeed()
    app.state.drafts = DraftStore(max_drafts=settings.max_drafts, idle_seconds=settings.draft_idle_seconds)

    app.include_router(submissions.router)
    app.include_router(drafts.router)
    app.include_router(pages.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
