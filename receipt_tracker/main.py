"""
Receipt Tracker backend — FastAPI application entry‑point.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from receipt_tracker.config import settings
from receipt_tracker.receipts.database import Base, engine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: ensure data dir + tables exist
    os.makedirs(settings.DATA_DIR, exist_ok=True)
    # Import models so Base.metadata knows about them
    import receipt_tracker.receipts.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", settings.DATABASE_URL)
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="Receipt Tracker",
    description="Receipt image → OCR → LLM extraction → validated category rows",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"service": "Receipt Tracker", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# ── Register API router ──────────────────────────────────────────────────
from receipt_tracker.receipts.routers.receipts import router as receipts_router  # noqa: E402

app.include_router(receipts_router, prefix="/api", tags=["Receipts"])
