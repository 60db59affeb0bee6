from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Float, Enum, Boolean, DateTime, Index
from app.database import Base

CustomerEligibility = ("new user", "loyalty customers", "all")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, nullable=False, index=True)
    product = Column(String(255), nullable=False)
    price = Column(Float, nullable=True)
    discount = Column(Float, nullable=False)
    # ISO calendar dates; kept as text so legacy rows with bad values can still be loaded
    start_date = Column(String(32), nullable=False)
    end_date = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False, default="Active", index=True)
    description = Column(Text, nullable=False, default="")
    customer_eligibility = Column(
        Enum(*CustomerEligibility, name="customer_eligibility"), nullable=False, default="all"
    )
    usage_limit = Column(Integer, nullable=False, default=0)
    one_time_use = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_coupons_status_end_date", "status", "end_date"),
    )
