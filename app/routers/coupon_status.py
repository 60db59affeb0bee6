import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_cron_secret, get_status_scheduler, get_status_updater
from app.schemas.coupon_status import (
    SchedulerHealthResponse, StatusFailureResponse, StatusPreviewResponse, StatusUpdateResponse,
    StatusChangeItem, PendingUpdateItem, RecordErrorItem
)
from app.services.status_scheduler import StatusScheduler
from app.services.status_updater import CouponStatusUpdater, UpdateResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coupons", tags=["coupon-status"])


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def verify_cron_secret(
    authorization: Optional[str] = Header(default=None),
    cron_secret: Optional[str] = Depends(get_cron_secret),
) -> None:
    if not cron_secret:
        return
    expected = f"Bearer {cron_secret}"
    if authorization is None or not secrets.compare_digest(authorization.encode(), expected.encode()):
        logger.warning("Rejected coupon status trigger with missing or wrong credentials")
        raise HTTPException(status_code=401, detail="Unauthorized")


def failure(error: Optional[str]) -> JSONResponse:
    body = StatusFailureResponse(error=error or "Unknown error occurred", timestamp=timestamp())
    return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))


def update_response(result: UpdateResult, message: str):
    if not result.success:
        return failure(result.error)
    return StatusUpdateResponse(
        message=message.format(count=result.updated_count),
        updated_count=result.updated_count,
        updated_coupons=[StatusChangeItem.model_validate(c) for c in result.updated_coupons],
        errors=[RecordErrorItem.model_validate(e) for e in result.errors],
        timestamp=timestamp(),
    )


@router.get("/scheduler", response_model=SchedulerHealthResponse)
def scheduler_health():
    return SchedulerHealthResponse(
        status="healthy",
        message="Coupon status scheduler endpoint is running",
        timestamp=timestamp(),
    )


@router.post(
    "/scheduler",
    response_model=StatusUpdateResponse,
    responses={500: {"model": StatusFailureResponse}},
    dependencies=[Depends(verify_cron_secret)],
)
def run_scheduled_update(scheduler: StatusScheduler = Depends(get_status_scheduler)):
    logger.info("Running scheduled coupon status update")
    return update_response(scheduler.trigger(), "Scheduled update completed. Updated {count} coupon statuses.")


@router.post(
    "/update-status",
    response_model=StatusUpdateResponse,
    responses={500: {"model": StatusFailureResponse}},
    dependencies=[Depends(verify_cron_secret)],
)
def update_statuses(scheduler: StatusScheduler = Depends(get_status_scheduler)):
    return update_response(scheduler.trigger(), "Successfully updated {count} coupon statuses")


@router.get(
    "/update-status",
    response_model=StatusPreviewResponse,
    responses={500: {"model": StatusFailureResponse}},
)
def preview_statuses(
    db: Session = Depends(get_db),
    updater: CouponStatusUpdater = Depends(get_status_updater),
):
    result = updater.preview(db)
    if not result.success:
        return failure(result.error)
    return StatusPreviewResponse(
        message=f"Found {len(result.coupons_needing_update)} coupons needing status updates",
        coupons_needing_update=[PendingUpdateItem.model_validate(p) for p in result.coupons_needing_update],
        errors=[RecordErrorItem.model_validate(e) for e in result.errors],
    )
