
import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date, datetime, timezone
from fastapi import HTTPException
from app.models.coupon import Coupon
from app.schemas.coupon import CouponCreate, CouponUpdate, CouponValidateRequest, ValidatedCoupon
from app.services.coupon_status import CouponStatus, classify, to_utc_date
from app.services.discount_calculator import DiscountCalculator

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = ("price",)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


class CouponService:
    """Service class for CRUD operations on coupons"""

    @staticmethod
    def create_coupon(db: Session, coupon_data: CouponCreate) -> Coupon:
        CouponService._validate_window(coupon_data.start_date, coupon_data.end_date)
        db_coupon = Coupon(
            code=coupon_data.code,
            product=coupon_data.product,
            price=coupon_data.price,
            discount=coupon_data.discount,
            start_date=coupon_data.start_date.isoformat(),
            end_date=coupon_data.end_date.isoformat(),
            status=CouponService._initial_status(coupon_data),
            description=coupon_data.description,
            customer_eligibility=coupon_data.customer_eligibility,
            usage_limit=coupon_data.usage_limit,
            one_time_use=coupon_data.one_time_use,
        )
        db.add(db_coupon)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(status_code=409, detail=f"Coupon code '{coupon_data.code}' already exists")
        db.refresh(db_coupon)
        logger.info("Created coupon %s with status %s", db_coupon.code, db_coupon.status)
        return db_coupon

    @staticmethod
    def get_coupon(db: Session, coupon_id: int) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.id == coupon_id).first()

    @staticmethod
    def get_coupon_by_code(db: Session, code: str) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.code == code).first()

    @staticmethod
    def get_coupons(db: Session, skip: int = 0, limit: int = 100, status: Optional[str] = None) -> List[Coupon]:
        limit = min(max(limit, 1), 500)
        q = db.query(Coupon)
        if status is not None:
            q = q.filter(Coupon.status == status)
        return q.order_by(Coupon.created_at.desc(), Coupon.id.desc()).offset(skip).limit(limit).all()

    @staticmethod
    def update_coupon(db: Session, coupon_id: int, coupon_data: CouponUpdate) -> Optional[Coupon]:
        db_coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not db_coupon:
            return None

        # only fields the client actually sent; an explicit null clears a nullable column
        changes = coupon_data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field not in NULLABLE_FIELDS:
                raise HTTPException(status_code=400, detail=f"Field '{field}' cannot be null")

        window_changed = "start_date" in changes or "end_date" in changes
        if window_changed:
            final_start = changes.get("start_date") or CouponService._stored_date(db_coupon.start_date)
            final_end = changes.get("end_date") or CouponService._stored_date(db_coupon.end_date)
            CouponService._validate_window(final_start, final_end)
            db_coupon.start_date = final_start.isoformat()
            db_coupon.end_date = final_end.isoformat()

        for field in ("product", "price", "discount", "description", "customer_eligibility",
                      "usage_limit", "one_time_use"):
            if field in changes:
                setattr(db_coupon, field, changes[field])

        requested_status = changes.get("status")
        if requested_status == CouponStatus.INACTIVE.value:
            db_coupon.status = CouponStatus.INACTIVE.value
        elif requested_status is not None or (window_changed and db_coupon.status != CouponStatus.INACTIVE.value):
            try:
                db_coupon.status = classify(db_coupon.start_date, db_coupon.end_date, today_utc()).value
            except ValueError as exc:
                db.rollback()
                raise HTTPException(status_code=400, detail=f"Coupon has an invalid validity window: {exc}")

        db_coupon.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(db_coupon)
        return db_coupon

    @staticmethod
    def delete_coupon(db: Session, coupon_id: int) -> bool:
        db_coupon = db.query(Coupon).filter(Coupon.id == coupon_id).first()
        if not db_coupon:
            return False
        db.delete(db_coupon)
        db.commit()
        return True

    @staticmethod
    def get_product_coupon(db: Session, product: str) -> Optional[Coupon]:
        """Highest-discount Active coupon for ``product`` whose window includes today."""
        today = today_utc()
        candidates = (
            db.query(Coupon)
            .filter(Coupon.product == product, Coupon.status == CouponStatus.ACTIVE.value)
            .order_by(Coupon.discount.desc(), Coupon.id)
            .all()
        )
        for coupon in candidates:
            try:
                if classify(coupon.start_date, coupon.end_date, today) == CouponStatus.ACTIVE:
                    return coupon
            except ValueError as exc:
                logger.warning("Ignoring coupon %s for product lookup: %s", coupon.code, exc)
        return None

    @staticmethod
    def validate_coupon(db: Session, request: CouponValidateRequest) -> ValidatedCoupon:
        coupon = CouponService.get_coupon_by_code(db, request.code)
        if not coupon or coupon.status != CouponStatus.ACTIVE.value:
            raise HTTPException(status_code=404, detail="Invalid or expired coupon code")
        CouponService.ensure_redeemable(coupon)

        amount = DiscountCalculator.calculate_discount_amount(request.subtotal, coupon.discount)
        return ValidatedCoupon(
            code=coupon.code,
            discount=coupon.discount,
            discount_amount=float(amount),
            description=coupon.description or f"{coupon.discount:g}% off your order",
        )

    @staticmethod
    def ensure_redeemable(coupon: Coupon) -> None:
        try:
            window_status = classify(coupon.start_date, coupon.end_date, today_utc())
        except ValueError:
            raise HTTPException(status_code=400, detail="Coupon has an invalid validity window")
        if window_status == CouponStatus.FUTURE:
            raise HTTPException(status_code=400, detail="This coupon is not yet active")
        if window_status == CouponStatus.EXPIRED:
            raise HTTPException(status_code=400, detail="This coupon has expired")
        if not DiscountCalculator.is_valid_percentage(coupon.discount):
            raise HTTPException(status_code=400, detail="Invalid discount percentage")

    @staticmethod
    def _initial_status(coupon_data: CouponCreate) -> str:
        if coupon_data.status == CouponStatus.INACTIVE.value:
            return CouponStatus.INACTIVE.value
        return classify(coupon_data.start_date, coupon_data.end_date, today_utc()).value

    @staticmethod
    def _stored_date(value: str) -> date:
        try:
            return to_utc_date(value)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Stored validity window is invalid: {exc}")

    @staticmethod
    def _validate_window(start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise HTTPException(status_code=400, detail="start_date must be on or before end_date")
