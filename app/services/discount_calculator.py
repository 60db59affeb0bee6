
from decimal import Decimal, ROUND_HALF_UP, getcontext

getcontext().prec = 28


def D(x) -> Decimal:
    return Decimal(str(x))


def round2(x: Decimal) -> Decimal:
    return x.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class DiscountCalculator:
    """Percentage discounts for coupon validation"""

    @staticmethod
    def is_valid_percentage(discount) -> bool:
        return D(0) < D(discount) <= D(100)

    @staticmethod
    def calculate_discount_amount(subtotal, discount) -> Decimal:
        return round2((D(subtotal) * D(discount)) / D(100))
