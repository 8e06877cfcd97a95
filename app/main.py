from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Response

from app.assessments.iota_v1 import load_config
from app.core.config import settings
from app.core.errors import ReferenceDataError
from app.core.formatting import format_decimal
from app.core.logging import configure_logging, get_logger
from app.core.metrics import get_counters, get_metrics, set_instrumentation_enabled
from app.data.reference_store import ReferenceStore, get_reference_store
from app.routers.admin import router as admin_router
from app.routers.centers import router as centers_router
from app.routers.exceptions import register_exception_handlers
from app.routers.score import router as score_router


configure_logging(environment=settings.environment)
set_instrumentation_enabled(settings.metrics_enabled)
logger = get_logger("iota.app.main", component="app")

# Store application startup time for health endpoint
_app_start_time = datetime.now(timezone.utc)


def _preload_reference() -> dict[str, object]:
    store = get_reference_store()
    if not settings.load_reference_on_startup or not settings.summary_csv_path:
        return {"enabled": False, "loaded": store.loaded}
    try:
        snapshot = store.ensure_loaded()
    except ReferenceDataError as exc:
        # Serve anyway; scoring answers 503 until an admin reload succeeds.
        logger.warning("reference_preload_failed", extra={"structured_data": {"error": exc.message}})
        return {"enabled": True, "loaded": False, "error": exc.message}
    return {"enabled": True, "loaded": True, "summary_rows": len(snapshot.summary)}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle.

    Startup parses the model parameters eagerly so a malformed config.yaml
    fails the boot instead of the first request, then loads the reference
    exports when a summary path is configured.
    """
    params = load_config()
    logger.info(
        "startup_model_loaded",
        extra={"structured_data": {"model": params.model_label, "version": params.version}},
    )
    preload_stats = _preload_reference()
    logger.info("reference_preload_complete", extra={"structured_data": preload_stats})
    yield
    # Shutdown: nothing


app = FastAPI(title=settings.app_name, lifespan=lifespan)
register_exception_handlers(app)

# Register routers at import time so tests see routes without requiring startup
app.include_router(score_router)
app.include_router(centers_router)
app.include_router(admin_router)


@app.get("/health")
def health(store: ReferenceStore = Depends(get_reference_store)):
    """Application status plus reference-table readiness.

    ``status`` is ``healthy`` once a reference snapshot is installed and
    ``degraded`` before that; the process itself still answers requests.
    """
    now = datetime.now(timezone.utc)
    uptime = (now - _app_start_time).total_seconds()
    counters = get_counters()
    metrics = get_metrics()
    total_scores = sum(count for label, count in counters.items() if label.startswith("iota.compile."))
    reference = store.stats()
    return {
        "status": "healthy" if reference["loaded"] else "degraded",
        "model": load_config().model_label,
        "started_at": _app_start_time.isoformat(),
        "uptime_seconds": format_decimal(uptime, decimals=2),
        "environment": settings.environment,
        "total_scores": int(total_scores),
        "reference": reference,
        "metrics_summary": {
            "tracked_operations": len(metrics["timings"]),
            "tracked_counters": len(counters),
        },
    }


@app.get("/", include_in_schema=False)
def root():
    """Lightweight index to avoid 404s and point to docs."""
    return {
        "name": settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
    }


@app.get("/favicon.ico", include_in_schema=False)
def favicon():
    """Empty favicon to prevent 404 noise in logs."""
    return Response(status_code=204)
