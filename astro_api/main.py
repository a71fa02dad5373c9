import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import SEED_SERVICES
from .database import Base, SessionLocal, engine
from .domain.catalog import router as catalog_router
from .domain.catalog import seed_services
from .domain.consultations import router as consultations_router
from .domain.otp import router as otp_router
from .domain.payments import router as payments_router
from .exceptions import AstroAPIError, RateLimited

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    if SEED_SERVICES:
        db = SessionLocal()
        try:
            seed_services(db)
        finally:
            db.close()

    try:
        from .rate_limiter import get_counter_store

        get_counter_store()
    except Exception as e:
        logger.warning(f"Rate limit store unavailable - limited endpoints will return 503: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="AstrobyAB API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AstroAPIError)
async def astro_api_exception_handler(request: Request, exc: AstroAPIError):
    """Render domain errors raised by the services as {message, ...} bodies"""
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after)}

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """422 with the first readable message up front for the booking forms"""
    errors = exc.errors()
    logger.warning(f"Validation error for {request.url.path}: {errors}")

    message = "Missing required fields"
    if errors:
        message = str(errors[0].get("msg", message)).removeprefix("Value error, ")

    return JSONResponse(
        status_code=422,
        content={"message": message, "detail": jsonable_encoder(errors)},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.exception(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://astrobyab.com,https://www.astrobyab.com,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(otp_router)
app.include_router(payments_router)
app.include_router(catalog_router)
app.include_router(consultations_router)


@app.get("/")
def root():
    return {"message": "AstrobyAB API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
