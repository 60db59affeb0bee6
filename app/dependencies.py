from typing import Optional

from fastapi import Request

from app import config
from app.services.status_scheduler import StatusScheduler
from app.services.status_updater import CouponStatusUpdater


def get_status_scheduler(request: Request) -> StatusScheduler:
    return request.app.state.status_scheduler


def get_status_updater(request: Request) -> CouponStatusUpdater:
    return request.app.state.status_scheduler.updater


def get_cron_secret() -> Optional[str]:
    return config.CRON_SECRET
