# app/main.py
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from shared.core.config import settings
from shared.core.database import init_models
from shared.helpers.exception_handler import setup_exception_handlers
from . import models  # noqa: F401  registers tables on Base
from .router.assets import assets_router
from .router.barcodes import barcode_router, public_scan_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

# StaticFiles checks the directory when mounted
os.makedirs(settings.barcode_dir, exist_ok=True)
os.makedirs(settings.temp_dir, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables
    await init_models()
    logger.info("Asset service started, artifacts in %s", settings.UPLOAD_DIR)
    yield


# This MUST exist for uvicorn
app = FastAPI(title="Asset Tracking Service API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
setup_exception_handlers(app)

# Barcode artifacts, addressed as {APP_URL}/uploads/{ref}
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

# Routers
app.include_router(public_scan_router.router)
app.include_router(barcode_router.router)
app.include_router(assets_router.router)


@app.get(f"{settings.API_PREFIX}/health")
def health():
    return {"status": "healthy"}
