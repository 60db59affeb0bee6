
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app import config
from app.database import engine, open_session
from app.exceptions import ConfigurationError
from app.models import coupon as coupon_model
from app.routers import coupon_status as coupon_status_router
from app.routers import coupons as coupons_router
from app.services.status_scheduler import StatusScheduler
from app.services.status_updater import CouponStatusUpdater

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create database tables
if engine is not None:
    coupon_model.Base.metadata.create_all(bind=engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler: StatusScheduler = app.state.status_scheduler
    if config.COUPON_SCHEDULER_ENABLED:
        scheduler.start()
    else:
        logger.info("Coupon status scheduler disabled")
    yield
    scheduler.stop(timeout=config.COUPON_STATUS_LOCK_TIMEOUT_SECONDS)


app = FastAPI(
    title="Coupon Lifecycle API",
    description="Coupon administration and automatic coupon status reconciliation for an e-commerce back-office",
    version="2.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.status_scheduler = StatusScheduler(
    CouponStatusUpdater(),
    session_factory=open_session,
    interval_seconds=config.COUPON_STATUS_INTERVAL_MINUTES * 60,
    lock_timeout=config.COUPON_STATUS_LOCK_TIMEOUT_SECONDS,
)

# CORS - keep permissive for demo; restrict in prod
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# status routes first so /coupons/scheduler is not taken for a coupon id
app.include_router(coupon_status_router.router)
app.include_router(coupons_router.router)


@app.get("/health")
def health():
    return {"status": "healthy"}


# Proper JSON error with correct status code
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"status_code": exc.status_code, "detail": exc.detail}},
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": str(exc), "timestamp": datetime.now(timezone.utc).isoformat()},
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
