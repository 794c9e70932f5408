"""
Tests for the plan catalog and the pricing calculator.
"""

import pytest

from classbook.billing.catalog import get_coupon
from classbook.billing.catalog import get_plan
from classbook.billing.catalog import list_plans
from classbook.billing.constants import CouponCode
from classbook.billing.constants import PlanCode
from classbook.billing.exceptions import InvalidCouponError
from classbook.billing.exceptions import InvalidPlanError
from classbook.billing.exceptions import PricingValidationError
from classbook.billing.pricing import calculate_price
from classbook.billing.pricing import is_full_waiver


class TestCatalog:
    def test_plans_listed_shortest_first(self):
        assert [plan.code for plan in list_plans()] == ["6M", "1Y", "2Y", "3Y"]

    def test_get_plan_by_string_code(self):
        plan = get_plan("1Y")
        assert plan.duration_months == 12
        assert plan.price_per_student_per_month == 8

    def test_get_plan_unknown_code(self):
        with pytest.raises(InvalidPlanError) as exc_info:
            get_plan("5Y")
        assert exc_info.value.code == "invalid_plan"

    def test_get_coupon_unknown_code(self):
        with pytest.raises(InvalidCouponError):
            get_coupon("FREE_12M")

    def test_plan_as_dict(self):
        assert get_plan(PlanCode.SIX_MONTHS).as_dict() == {
            "id": "6M",
            "name": "6 months",
            "duration_months": 6,
            "price_per_student_per_month": 10,
        }


class TestCalculatePrice:
    def test_one_year_without_coupon(self):
        price = calculate_price("1Y", 100, 20)

        assert price.billable_students == 120
        assert price.monthly_cost == 960
        assert price.original_amount == 11520
        assert price.discount_amount == 0
        assert price.paid_amount == 11520
        assert price.coupon_code is None

    def test_one_year_with_three_month_coupon(self):
        price = calculate_price("1Y", 50, coupon_code=CouponCode.FREE_3M)

        assert price.monthly_cost == 400
        assert price.original_amount == 4800
        assert price.discount_months == 3
        assert price.discount_amount == 1200
        assert price.paid_amount == 3600
        assert price.coupon_code == "FREE_3M"

    def test_six_months_with_six_month_coupon_is_nominal(self):
        price = calculate_price("6M", 50, coupon_code="FREE_6M")

        assert price.paid_amount == 1
        assert price.discount_amount == 0
        assert price.discount_months == 0
        assert price.original_amount == 3000
        assert price.billable_students == 50

    def test_one_year_with_six_month_coupon_uses_formula(self):
        price = calculate_price("1Y", 10, coupon_code="FREE_6M")

        assert price.discount_amount == 480
        assert price.paid_amount == 480

    def test_blank_coupon_means_no_coupon(self):
        assert calculate_price("2Y", 10, coupon_code="").paid_amount == 10 * 7 * 24

    @pytest.mark.parametrize("plan_code", ["6M", "1Y", "2Y", "3Y"])
    @pytest.mark.parametrize("coupon_code", [None, "FREE_3M", "FREE_6M"])
    def test_paid_amount_never_negative(self, plan_code, coupon_code):
        price = calculate_price(plan_code, 7, 3, coupon_code)

        assert price.billable_students == 10
        assert price.paid_amount >= 0
        if not is_full_waiver(plan_code, coupon_code):
            assert price.paid_amount == price.original_amount - price.discount_amount

    @pytest.mark.parametrize("entered_students", [0, -1])
    def test_entered_students_must_be_positive(self, entered_students):
        with pytest.raises(PricingValidationError) as exc_info:
            calculate_price("1Y", entered_students)
        assert exc_info.value.code == "invalid_input"

    def test_future_students_cannot_be_negative(self):
        with pytest.raises(PricingValidationError):
            calculate_price("1Y", 10, -1)

    @pytest.mark.parametrize(("entered", "future"), [(10_001, 0), (1, 10_001)])
    def test_student_counts_capped_per_order(self, entered, future):
        with pytest.raises(PricingValidationError):
            calculate_price("3Y", entered, future)

    def test_largest_order_prices(self):
        price = calculate_price("3Y", 10_000, 10_000)

        assert price.original_amount == 20_000 * 6 * 36

    def test_unknown_plan(self):
        with pytest.raises(InvalidPlanError):
            calculate_price("1M", 10)

    def test_unknown_coupon(self):
        with pytest.raises(InvalidCouponError):
            calculate_price("1Y", 10, coupon_code="HALF_OFF")

    def test_as_dict(self):
        data = calculate_price("1Y", 100, 20).as_dict()

        assert data["plan_code"] == "1Y"
        assert data["paid_amount"] == 11520
        assert data["total_months"] == 12
