import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.models.coupon import Coupon
from app.services.coupon_status import CouponStatus, DateLike, classify, to_utc_date

logger = logging.getLogger(__name__)


@dataclass
class StatusChange:
    code: str
    old_status: str
    new_status: str


@dataclass
class PendingChange:
    id: int
    code: str
    current_status: str
    computed_status: str
    start_date: str
    end_date: str


@dataclass
class RecordError:
    code: str
    error: str


@dataclass
class UpdateResult:
    success: bool
    updated_coupons: List[StatusChange] = field(default_factory=list)
    errors: List[RecordError] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def updated_count(self) -> int:
        return len(self.updated_coupons)


@dataclass
class PreviewResult:
    success: bool
    coupons_needing_update: List[PendingChange] = field(default_factory=list)
    errors: List[RecordError] = field(default_factory=list)
    error: Optional[str] = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CouponStatusUpdater:
    """Reconciles stored coupon statuses with their validity windows.

    ``Inactive`` coupons belong to operators and are never reclassified.
    All writes of one pass go out in a single commit; any unexpected error
    rolls the pass back and is reported as a failed result.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    def today(self) -> date:
        return to_utc_date(self.clock())

    def run(self, db: Session, today: Optional[DateLike] = None) -> UpdateResult:
        current = to_utc_date(today) if today is not None else self.today()
        errors: List[RecordError] = []
        try:
            mismatches = self._find_mismatches(db, current, errors)
            stamp = self.clock()
            changes = []
            for coupon, new_status in mismatches:
                changes.append(StatusChange(code=coupon.code, old_status=coupon.status, new_status=new_status.value))
                coupon.status = new_status.value
                coupon.updated_at = stamp
            db.commit()
        except Exception as exc:
            db.rollback()
            logger.exception("Coupon status pass for %s aborted", current)
            return UpdateResult(success=False, errors=errors, error=str(exc) or exc.__class__.__name__)

        logger.info("Updated %s coupon statuses for %s", len(changes), current)
        for change in changes:
            logger.debug("Coupon %s: %s -> %s", change.code, change.old_status, change.new_status)
        return UpdateResult(success=True, updated_coupons=changes, errors=errors)

    def preview(self, db: Session, today: Optional[DateLike] = None) -> PreviewResult:
        current = to_utc_date(today) if today is not None else self.today()
        errors: List[RecordError] = []
        try:
            mismatches = self._find_mismatches(db, current, errors)
        except Exception as exc:
            logger.exception("Coupon status preview for %s failed", current)
            return PreviewResult(success=False, errors=errors, error=str(exc) or exc.__class__.__name__)

        pending = [
            PendingChange(
                id=coupon.id,
                code=coupon.code,
                current_status=coupon.status,
                computed_status=new_status.value,
                start_date=coupon.start_date,
                end_date=coupon.end_date,
            )
            for coupon, new_status in mismatches
        ]
        return PreviewResult(success=True, coupons_needing_update=pending, errors=errors)

    def _find_mismatches(
        self, db: Session, today: date, errors: List[RecordError]
    ) -> List[Tuple[Coupon, CouponStatus]]:
        mismatches = []
        for coupon in db.query(Coupon).order_by(Coupon.id).all():
            if coupon.status == CouponStatus.INACTIVE.value:
                continue
            try:
                computed = classify(coupon.start_date, coupon.end_date, today)
            except ValueError as exc:
                logger.warning("Skipping coupon %s: %s", coupon.code, exc)
                errors.append(RecordError(code=coupon.code, error=str(exc)))
                continue
            if computed.value != coupon.status:
                mismatches.append((coupon, computed))
        return mismatches
