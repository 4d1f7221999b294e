"""报价计算单元测试."""

from __future__ import annotations

import pytest

from print_constructor.services.pricing import PriceBuilder, step_value, tier_rate

TIERS = [(5000, 0.25), (1000, 0.15), (500, 0.1)]


class TestTierRate:
    """测试阶梯查找."""

    @pytest.mark.parametrize(
        ("quantity", "expected"),
        [(100, 0), (500, 0.1), (999, 0.1), (1000, 0.15), (10000, 0.25)],
    )
    def test_threshold_inclusive(self, quantity: int, expected: float) -> None:
        assert tier_rate(quantity, TIERS) == expected

    def test_step_value(self) -> None:
        steps = [(1, 0.5), (5, 1.0)]
        assert step_value(0.5, steps, 2.0) == 0.5
        assert step_value(5, steps, 2.0) == 1.0
        assert step_value(6, steps, 2.0) == 2.0


class TestPriceBuilder:
    """测试报价构建."""

    def test_plain_total(self) -> None:
        """只有基础价和单价."""
        quote = PriceBuilder(base_price=50, price_per_unit=0.5, quantity=100).build()
        assert quote.total == 100
        assert quote.breakdown["base_cost"] == 100

    def test_discount_before_surcharges(self) -> None:
        """折扣只作用于乘数后的小计，附加费不打折."""
        quote = (
            PriceBuilder(base_price=50, price_per_unit=0.5, quantity=1000)
            .multiply("sides", 2)
            .discount(0.15)
            .surcharge("rush", 100)
            .build()
        )
        assert quote.breakdown["subtotal"] == 1100
        assert quote.breakdown["discount"] == 165
        assert quote.total == 1035

    def test_multipliers_accumulate(self) -> None:
        builder = PriceBuilder(10, 0, 1).multiply("finish", 1.5).multiply("finish", 2)
        builder.add_to_multiplier("size", 0.2)
        assert builder.multiplier == pytest.approx(3.6)
        assert builder.build().breakdown["multipliers"] == {"finish": 3.0, "size": 1.2}

    def test_discount_clamped(self) -> None:
        """折扣率限制在 [0, 1]，总价不为负."""
        quote = PriceBuilder(10, 1, 10).discount(2).build()
        assert quote.total == 0

    def test_details_and_extra(self) -> None:
        quote = PriceBuilder(10, 1, 10, currency="EUR").detail("material", "vinyl").build({"cut": "die"})
        assert quote.currency == "EUR"
        assert quote.breakdown["details"] == {"material": "vinyl"}
        assert quote.breakdown["cut"] == "die"
        assert quote.to_dict()["total"] == 20

    def test_zero_surcharge_ignored(self) -> None:
        quote = PriceBuilder(10, 1, 10).surcharge("none", 0).build()
        assert quote.breakdown["surcharges"] == {}
