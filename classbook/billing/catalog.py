"""
Static plan and coupon catalogs.

Plans and coupons are constant data built once at import time. There is no
database table for them and no runtime reconfiguration; changing a price
means changing this module and deploying.

Usage:
    plan = get_plan("1Y")
    plan.duration_months            # 12
    plan.price_per_student_per_month  # 8
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from classbook.billing.constants import CouponCode
from classbook.billing.constants import PlanCode
from classbook.billing.exceptions import InvalidCouponError
from classbook.billing.exceptions import InvalidPlanError


@dataclass(frozen=True)
class Plan:
    """A prepaid plan. Prices are whole currency units."""

    code: str
    duration_months: int
    price_per_student_per_month: int

    @property
    def name(self) -> str:
        return PlanCode(self.code).label

    def as_dict(self) -> dict:
        return {
            "id": self.code,
            "name": str(self.name),
            "duration_months": self.duration_months,
            "price_per_student_per_month": self.price_per_student_per_month,
        }


@dataclass(frozen=True)
class Coupon:
    """A coupon that waives ``discount_months`` of the plan."""

    code: str
    discount_months: int


PLANS = MappingProxyType({
    PlanCode.SIX_MONTHS: Plan(
        code=PlanCode.SIX_MONTHS,
        duration_months=6,
        price_per_student_per_month=10,
    ),
    PlanCode.ONE_YEAR: Plan(
        code=PlanCode.ONE_YEAR,
        duration_months=12,
        price_per_student_per_month=8,
    ),
    PlanCode.TWO_YEARS: Plan(
        code=PlanCode.TWO_YEARS,
        duration_months=24,
        price_per_student_per_month=7,
    ),
    PlanCode.THREE_YEARS: Plan(
        code=PlanCode.THREE_YEARS,
        duration_months=36,
        price_per_student_per_month=6,
    ),
})

COUPONS = MappingProxyType({
    CouponCode.FREE_3M: Coupon(code=CouponCode.FREE_3M, discount_months=3),
    CouponCode.FREE_6M: Coupon(code=CouponCode.FREE_6M, discount_months=6),
})


def get_plan(plan_code: str) -> Plan:
    """Look up a plan, raising InvalidPlanError for unknown codes."""
    try:
        return PLANS[plan_code]
    except KeyError:
        raise InvalidPlanError(plan_code) from None


def get_coupon(coupon_code: str) -> Coupon:
    """Look up a coupon, raising InvalidCouponError for unknown codes."""
    try:
        return COUPONS[coupon_code]
    except KeyError:
        raise InvalidCouponError(coupon_code) from None


def list_plans() -> list[Plan]:
    """All plans, shortest first."""
    return sorted(PLANS.values(), key=lambda plan: plan.duration_months)
