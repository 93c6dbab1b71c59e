import json
import logging
import time
from typing import Callable

from fastapi import FastAPI, Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from com.furia.app.config.config import Config
from com.furia.app.exceptions.exceptions import VerificationError
from com.furia.app.services.verification_system.identity_verification.identity_verification_router import router as verification_router

config = Config()

logging.basicConfig(level=config.log_level)
logger = logging.getLogger(__name__)
request_logger = logging.getLogger("furia.requests")


app = FastAPI(
    title="FURIA Fan Platform Verification API",
    description="API for identity verification of fans using an ID document and a selfie",
    version="1.0.0"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next: Callable):
    t0 = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - t0) * 1000
    request_logger.info(json.dumps({
        "route": request.url.path,
        "method": request.method,
        "status": response.status_code,
        "latency_ms": round(latency_ms, 2),
    }))
    return response


def _error_content(message: str, error: str = None) -> dict:
    content = {"success": False, "message": message}
    if config.is_development and error:
        content["error"] = error
    return content


@app.exception_handler(VerificationError)
async def verification_error_handler(request: Request, exc: VerificationError):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.message, exc.detail or exc.message)
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_content("Invalid request body", str(exc.errors()))
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content("Internal server error", str(exc))
    )


# Register routers
app.include_router(verification_router)


@app.get("/", status_code=status.HTTP_200_OK, response_class=PlainTextResponse)
async def health_check():
    return "FURIA Fan Platform Verification API is running and healthy"
