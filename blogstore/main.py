from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from sqlmodel import Session

from blogstore.core.config import settings
from blogstore.core.exceptions import ConstraintViolation, InvalidState, NotFound
from blogstore.database.engine import create_db_and_tables, engine
from blogstore.database.seed import seed_defaults
from blogstore.routers import comments, newsletter, posts, site

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # NOTE: the schema is normally managed by Alembic.
    # Run: alembic upgrade head
    logger.info("Starting application...")

    if settings.CREATE_TABLES_ON_STARTUP:
        create_db_and_tables(engine)
        logger.info("✓ Tables and views created")

    if settings.SEED_ON_STARTUP:
        with Session(engine) as db:
            created = seed_defaults(db)
        logger.info(f"✓ Default data checked ({sum(created.values())} rows added)")

    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    title="Blogstore",
    description="Blog platform data layer: posts, comments, engagement, settings and menus",
    version="1.0.0",
    lifespan=lifespan
)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ConstraintViolation)
async def constraint_violation_handler(request: Request, exc: ConstraintViolation):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "constraint": exc.constraint}
    )


@app.exception_handler(InvalidState)
async def invalid_state_handler(request: Request, exc: InvalidState):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


app.include_router(posts.router)        # Posts: /posts/* (published listing, stats, engagement)
app.include_router(comments.router)     # Comments: /posts/{id}/comments, /comments/{id}/like
app.include_router(site.router)         # Site: /settings, /menus, /categories
app.include_router(newsletter.router)   # Newsletter: /newsletter/*, /contact


@app.get("/")
def read_root():
    return {
        "message": "Welcome to Blogstore API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}
