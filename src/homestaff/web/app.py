"""
HomeStaff Web API - FastAPI application.

Uses Supabase Auth; the React frontend sends the user's access token as a
Bearer header.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from homestaff import __version__
from homestaff.config import settings
from homestaff.observability import setup_logging
from onboarding.api import router as onboarding_router

logger = logging.getLogger(__name__)

app = FastAPI(title="HomeStaff", version=__version__)


@app.on_event("startup")
async def startup_event():
    """Configure logging and log environment on startup."""
    setup_logging(settings.log_level)
    logger.info("HomeStaff API starting up...")
    logger.info(f"  Environment: {settings.homestaff_env}")


# CORS middleware for React frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",  # Vite dev server
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(onboarding_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}
