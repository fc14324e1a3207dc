from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from dotenv import load_dotenv

from app.core.config import settings
from app.api.v1 import summary
from app.core.redis import redis_client
from app.utils.responses import AsciiJSONResponse

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if not redis_client.is_initialized:
        await redis_client.initialize()
    if not settings.SUMMARY_SECRET:
        logger.warning("SUMMARY_SECRET is not set; summary tokens are disabled")
    yield
    # Shutdown
    await redis_client.close()

app = FastAPI(
    title="Lecture Summary API",
    description="Sealed chat summary tokens for the lecture portal",
    version="1.0.0",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost", "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Validation errors echo the request body, which may hold unpaired surrogates
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return AsciiJSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})

# Include routers
app.include_router(summary.router, prefix="/api/v1/summary", tags=["summary"])

@app.get("/")
async def root():
    return {"message": "Lecture Summary API is running"}

@app.get("/health")
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": "lecture-summary-api",
        "summary_secret": "configured" if settings.SUMMARY_SECRET else "not configured"
    }
