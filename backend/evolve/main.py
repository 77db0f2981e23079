"""Main FastAPI application for the Evolve plan service."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from evolve.api.routes.plan import router as plan_router
from evolve.core.config import settings
from evolve.core.logging import configure_logging
from evolve.core.middleware import RequestIDMiddleware
from evolve.observability.client import init_opik

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["X-Request-Id"],
)
app.include_router(plan_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness check")
async def health_check() -> dict[str, str]:
    """Return a simple status payload so automation can check the API."""
    return {"status": "ok"}
