import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes import booking_policies
from app.core.config import settings
from app.services.booking import InvariantViolation

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Salon Booking Policy API", version="0.1.0")

app.include_router(booking_policies.router, prefix="/api/v1")


@app.exception_handler(InvariantViolation)
def invariant_violation_handler(request: Request, exc: InvariantViolation):
    logger.warning(f"Invariant violation on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc)},
    )


@app.get("/health")
def health_check():
    return {"status": "ok"}
