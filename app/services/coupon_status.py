import enum
from datetime import date, datetime, timezone
from typing import Union

DateLike = Union[date, datetime, str]


class CouponStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    EXPIRED = "Expired"
    FUTURE = "Future"


def to_utc_date(value: DateLike) -> date:
    """Normalize a date, datetime or ISO-8601 string to a UTC calendar date.

    Naive datetimes are taken to be UTC already. Aware ones are converted
    first, so ``2024-01-31T23:30:00-05:00`` lands on 2024-02-01.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Date value is empty")
        if len(text) == 10:
            try:
                return date.fromisoformat(text)
            except ValueError as exc:
                raise ValueError(f"Invalid date value: {value!r}") from exc
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"Invalid date value: {value!r}") from exc
        return to_utc_date(parsed)
    if value is None:
        raise ValueError("Date value is missing")
    raise ValueError(f"Unsupported date value: {value!r}")


def classify(start_date: DateLike, end_date: DateLike, today: DateLike) -> CouponStatus:
    """Status a coupon's validity window implies for ``today`` (day granularity, UTC)."""
    start = to_utc_date(start_date)
    end = to_utc_date(end_date)
    current = to_utc_date(today)

    if current < start:
        return CouponStatus.FUTURE
    if current > end:
        return CouponStatus.EXPIRED
    return CouponStatus.ACTIVE
