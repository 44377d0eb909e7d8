"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from worksync.api.v1.api import api_router
from worksync.db.database import close_db, init_db
from worksync.settings import settings
from worksync.utils import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_db()
    logger.info(f"worksync API started ({settings.environment})")
    yield
    close_db()


app = FastAPI(
    title="worksync API",
    description="Workspace, folder and file tree for the collaborative dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"status": "ok", "service": "worksync API", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("worksync.main:app", host=settings.host, port=settings.port, reload=settings.debug)
