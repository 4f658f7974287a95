"""FastAPI application for the rental booking REST API.

Runs locally under uvicorn (run_server) and on AWS Lambda behind API
Gateway through the Mangum handler.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from rental_api.exceptions import register_exception_handlers
from rental_api.middleware.correlation import CorrelationIdMiddleware
from rental_api.models.common import HealthResponse
from rental_api.routes.bookings import router as bookings_router
from rental_api.routes.payments import router as payments_router
from rental_core.utils.logging import configure_logging

configure_logging(logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Rental Booking API",
    description="REST API for monthly property bookings and payments",
    version="0.1.0",
)

# Configure CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

app.include_router(bookings_router, prefix="/api")
app.include_router(payments_router, prefix="/api")


@app.get("/api/ping", response_model=HealthResponse, tags=["health"])
async def ping() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(timestamp=datetime.now(UTC))


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("rental_api.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
