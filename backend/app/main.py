"""
FastAPI entrypoint for TripSplit backend application.
"""
import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.utils import format_error
from app.api.router import api_router
from app.db.session import init_db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="TripSplit API",
    description="Backend API for group trip expense splitting",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Malformed expense or settlement input."""
    logger.info(f"Rejected request to {request.url.path}: {exc.message}")
    details = {"expense_id": exc.expense_id} if exc.expense_id is not None else None
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=format_error(exc.message, details)
    )


@app.on_event("startup")
def on_startup():
    """Create tables if they do not exist."""
    init_db()


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "TripSplit API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
