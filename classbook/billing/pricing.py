"""
Pricing calculator.

``calculate_price`` is the single authority on what a plan costs. It is
called for previews, again when the checkout order is created, and a third
time when a paid intent is turned into a subscription. Amounts submitted by
a client are never trusted.

All amounts are integers in whole currency units.
"""

from __future__ import annotations

from dataclasses import asdict
from dataclasses import dataclass

from classbook.billing.catalog import get_coupon
from classbook.billing.catalog import get_plan
from classbook.billing.constants import MAX_STUDENTS_PER_ORDER
from classbook.billing.constants import NOMINAL_PAID_AMOUNT
from classbook.billing.constants import CouponCode
from classbook.billing.constants import PlanCode
from classbook.billing.exceptions import InvalidDiscountError
from classbook.billing.exceptions import PricingValidationError


@dataclass(frozen=True)
class PriceBreakdown:
    """Result of a price calculation."""

    plan_code: str
    entered_students: int
    future_students: int
    billable_students: int
    price_per_student_per_month: int
    total_months: int
    monthly_cost: int
    original_amount: int
    discount_months: int = 0
    discount_amount: int = 0
    paid_amount: int = 0
    coupon_code: str | None = None

    def as_dict(self) -> dict:
        return asdict(self)


def is_full_waiver(plan_code: str, coupon_code: str | None) -> bool:
    """
    True for the six month plan combined with the six month coupon.

    This pairing waives the whole plan. It is charged a nominal amount
    instead of going through the discount formula.
    """
    return plan_code == PlanCode.SIX_MONTHS and coupon_code == CouponCode.FREE_6M


def calculate_price(
    plan_code: str,
    entered_students: int,
    future_students: int = 0,
    coupon_code: str | None = None,
) -> PriceBreakdown:
    """
    Price a plan for a number of students, optionally with a coupon.

    Args:
        plan_code: Catalog plan code, e.g. "1Y".
        entered_students: Students on the roster today. Must be positive.
        future_students: Extra capacity bought up front. Must not be negative.
            Neither count may exceed MAX_STUDENTS_PER_ORDER.
        coupon_code: Optional catalog coupon code.

    Raises:
        InvalidPlanError: Unknown plan.
        PricingValidationError: Student counts out of range.
        InvalidCouponError: Unknown coupon.
        InvalidDiscountError: Coupon worth more than the plan.
    """
    plan = get_plan(plan_code)

    if entered_students <= 0:
        raise PricingValidationError("Entered students must be greater than 0.")
    if future_students < 0:
        raise PricingValidationError("Future students cannot be negative.")
    if max(entered_students, future_students) > MAX_STUDENTS_PER_ORDER:
        raise PricingValidationError(
            f"At most {MAX_STUDENTS_PER_ORDER} students can be bought in one order.",
        )

    billable_students = entered_students + future_students
    monthly_cost = billable_students * plan.price_per_student_per_month
    original_amount = monthly_cost * plan.duration_months

    base = {
        "plan_code": str(plan.code),
        "entered_students": entered_students,
        "future_students": future_students,
        "billable_students": billable_students,
        "price_per_student_per_month": plan.price_per_student_per_month,
        "total_months": plan.duration_months,
        "monthly_cost": monthly_cost,
        "original_amount": original_amount,
    }

    if not coupon_code:
        return PriceBreakdown(**base, paid_amount=original_amount)

    coupon = get_coupon(coupon_code)

    if is_full_waiver(plan.code, coupon.code):
        return PriceBreakdown(
            **base,
            paid_amount=NOMINAL_PAID_AMOUNT,
            coupon_code=str(coupon.code),
        )

    discount_amount = monthly_cost * coupon.discount_months
    paid_amount = original_amount - discount_amount
    if paid_amount < 0:
        raise InvalidDiscountError

    return PriceBreakdown(
        **base,
        discount_months=coupon.discount_months,
        discount_amount=discount_amount,
        paid_amount=paid_amount,
        coupon_code=str(coupon.code),
    )
