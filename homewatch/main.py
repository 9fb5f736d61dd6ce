"""Home Watch CRM Web Application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from homewatch.core.config import settings
from homewatch.core.database import create_db_and_tables
from homewatch.routes import checklists, clients, inspectors, photos

# Configure logging
log_dir = settings.log_dir
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    logger.info("Starting Home Watch CRM")
    create_db_and_tables()
    yield
    logger.info("Home Watch CRM shut down")


app = FastAPI(
    title=settings.app_name,
    description="Home-watch visit checklists with emailed PDF reports",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for external access
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(checklists.router)
app.include_router(photos.router)
app.include_router(clients.router)
app.include_router(inspectors.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
