import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from pharmreturns.config import settings
from pharmreturns.database import engine
from pharmreturns.middleware.logging_config import configure_logging

configure_logging(settings.log_level, settings.log_format)

from pharmreturns.api.credits import router as credits_router  # noqa: E402
from pharmreturns.api.deps import get_catalog  # noqa: E402
from pharmreturns.api.ndc import router as ndc_router  # noqa: E402
from pharmreturns.api.products import router as products_router  # noqa: E402
from pharmreturns.services.catalog import ProductCatalog  # noqa: E402

logger = logging.getLogger("pharmreturns")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting pharmacy returns credit service (env=%s, catalog=%s)",
        settings.environment,
        settings.catalog_backend,
    )
    yield
    await engine.dispose()


app = FastAPI(
    title="Pharmacy Returns Credit Service",
    description="NDC validation and return-credit estimation for pharmacy returns",
    version="0.1.0",
    lifespan=lifespan,
)

# ── CORS ─────────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

# ── Security headers middleware ──────────────────────────────────────────────
from pharmreturns.middleware.security_headers import SecurityHeadersMiddleware  # noqa: E402

app.add_middleware(SecurityHeadersMiddleware)

# ── Request context middleware (request ID + timing) ─────────────────────────
from pharmreturns.middleware.request_context import RequestContextMiddleware  # noqa: E402

app.add_middleware(RequestContextMiddleware)

# ── Prometheus metrics middleware ────────────────────────────────────────────
from pharmreturns.middleware.metrics import PrometheusMiddleware  # noqa: E402

app.add_middleware(PrometheusMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled errors; expose the detail only in development."""
    tb = traceback.format_exc()
    logger.error(
        "Unhandled %s on %s %s: %s\n%s",
        type(exc).__name__, request.method, request.url.path, exc, tb,
    )
    if settings.environment == "development":
        return JSONResponse(
            status_code=500,
            content={"detail": f"{type(exc).__name__}: {exc}"},
        )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(ndc_router)
app.include_router(products_router)
app.include_router(credits_router)


@app.get("/api/health")
async def health_check(catalog: ProductCatalog = Depends(get_catalog)):
    try:
        products = await catalog.count()
        catalog_status = {"backend": catalog.backend, "status": "ready", "products": products}
    except Exception as exc:
        logger.warning("Catalog health check failed: %s", exc)
        catalog_status = {"backend": catalog.backend, "status": "unavailable", "error": str(exc)}

    return {
        "status": "healthy" if catalog_status["status"] == "ready" else "degraded",
        "environment": settings.environment,
        "catalog": catalog_status,
    }


@app.get("/metrics", tags=["metrics"])
async def prometheus_metrics():
    """Prometheus text exposition of HTTP and estimation metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
