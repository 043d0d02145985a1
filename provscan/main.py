import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables at the very beginning
load_dotenv()

from provscan.config import settings  # noqa: E402

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

from provscan.api import detection, system  # noqa: E402
from provscan.integrations import http_client  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    await http_client.initialize()
    yield
    await http_client.close()
    logger.info("[SHUTDOWN] Provenance service stopped")


app = FastAPI(title="Image Provenance Checker", lifespan=lifespan)

app.include_router(system.router)
app.include_router(detection.router)
