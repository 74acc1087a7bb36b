# backend/gym_booking/main.py
from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, Response

from .core.config import settings
from .errors import register_error_handlers
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import bookings as bookings_v1

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

API_TITLE = "Gym Booking API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Class reservations, waitlists and attendance for gym organizations."

app = FastAPI(title=API_TITLE, version=API_VERSION, description=API_DESCRIPTION)

register_error_handlers(app)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/organizations/{organization_id}")
app.include_router(api_v1)


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "healthy", "environment": settings.environment}


@app.get("/metrics/prometheus", include_in_schema=False)
def metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )


logger.info(f"{API_TITLE} v{API_VERSION} started in {settings.environment} mode")
