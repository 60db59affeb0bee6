from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal
from datetime import date, datetime

StatusValue = Literal["Active", "Inactive", "Expired", "Future"]
EligibilityValue = Literal["new user", "loyalty customers", "all"]


# Request schemas
class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=64, description="Unique, case-sensitive coupon code")
    product: str = Field(..., min_length=1, max_length=255)
    price: Optional[float] = Field(default=None, ge=0)
    discount: float = Field(..., gt=0, le=100, description="Discount percentage")
    start_date: date
    end_date: date
    status: Optional[StatusValue] = Field(
        default=None, description="Only 'Inactive' is kept as given; other statuses are computed from the dates"
    )
    description: str = Field(default="")
    customer_eligibility: EligibilityValue = Field(default="all")
    usage_limit: int = Field(default=0, ge=0)
    one_time_use: bool = Field(default=False)


class CouponUpdate(BaseModel):
    product: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, gt=0, le=100)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[StatusValue] = Field(None, description="'Inactive' deactivates; anything else recomputes")
    description: Optional[str] = None
    customer_eligibility: Optional[EligibilityValue] = None
    usage_limit: Optional[int] = Field(None, ge=0)
    one_time_use: Optional[bool] = None


class CouponValidateRequest(BaseModel):
    code: str = Field(..., min_length=1)
    subtotal: float = Field(..., ge=0)


# Response schemas
class CouponResponse(BaseModel):
    id: int
    code: str
    product: str
    price: Optional[float] = None
    discount: float
    start_date: str
    end_date: str
    status: str
    description: str
    customer_eligibility: str
    usage_limit: int
    one_time_use: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ValidatedCoupon(BaseModel):
    code: str
    discount: float
    discount_amount: float
    description: str


class CouponValidateResponse(BaseModel):
    success: bool = True
    coupon: ValidatedCoupon


class ProductCoupon(BaseModel):
    id: int
    code: str
    discount: float
    active: bool = True

    model_config = ConfigDict(from_attributes=True)


class ProductCouponResponse(BaseModel):
    coupon: Optional[ProductCoupon] = None
    message: Optional[str] = None
