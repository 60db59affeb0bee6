from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from app.database import get_db
from app.schemas.coupon import (
    CouponCreate, CouponUpdate, CouponResponse, CouponValidateRequest, CouponValidateResponse, StatusValue,
    ProductCoupon, ProductCouponResponse
)
from app.services.coupon_service import CouponService

router = APIRouter(prefix="", tags=["coupons"])


@router.post("/coupons", response_model=CouponResponse, status_code=201)
def create_coupon(coupon: CouponCreate, db: Session = Depends(get_db)):
    created = CouponService.create_coupon(db, coupon)
    return created


@router.get("/coupons", response_model=List[CouponResponse])
def list_coupons(skip: int = 0, limit: int = 100, status: Optional[StatusValue] = None,
                 db: Session = Depends(get_db)):
    return CouponService.get_coupons(db, skip, limit, status)


@router.post("/coupons/validate", response_model=CouponValidateResponse)
def validate_coupon(payload: CouponValidateRequest, db: Session = Depends(get_db)):
    coupon = CouponService.validate_coupon(db, payload)
    return CouponValidateResponse(coupon=coupon)


@router.get("/coupons/product/{product}", response_model=ProductCouponResponse)
def get_product_coupon(product: str, db: Session = Depends(get_db)):
    c = CouponService.get_product_coupon(db, product)
    if not c:
        return ProductCouponResponse(message="No active coupon found for this product")
    return ProductCouponResponse(coupon=ProductCoupon.model_validate(c))


@router.get("/coupons/{coupon_id}", response_model=CouponResponse)
def get_coupon(coupon_id: int, db: Session = Depends(get_db)):
    c = CouponService.get_coupon(db, coupon_id)
    if not c:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return c


@router.put("/coupons/{coupon_id}", response_model=CouponResponse)
def update_coupon(coupon_id: int, payload: CouponUpdate, db: Session = Depends(get_db)):
    updated = CouponService.update_coupon(db, coupon_id, payload)
    if not updated:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return updated


@router.delete("/coupons/{coupon_id}", status_code=204)
def delete_coupon(coupon_id: int, db: Session = Depends(get_db)):
    ok = CouponService.delete_coupon(db, coupon_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return
