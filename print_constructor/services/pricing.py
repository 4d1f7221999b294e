"""报价计算辅助模块.

所有产品报价遵循同一结构::

    subtotal = (base_price + price_per_unit × quantity) × Π(multipliers)
    total = subtotal − subtotal × discount_rate + Σ(surcharges)

数量折扣只作用于附加费之前的小计；附加费在折扣之后累加，不参与折扣。
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from print_constructor.models.results import PriceQuote
from print_constructor.utils.constants import DEFAULT_CURRENCY
from print_constructor.utils.helpers import round_money

# 折扣阶梯: (最小数量, 折扣率)，按数量从大到小排列
DiscountTiers = Sequence[tuple[int, float]]


def tier_rate(quantity: float, tiers: DiscountTiers) -> float:
    """按阶梯表查找比率.

    Args:
        quantity: 数量（或面积等度量）
        tiers: (阈值, 比率) 列表，阈值从大到小

    Returns:
        第一个满足 quantity >= 阈值 的比率，都不满足时为 0
    """
    for threshold, rate in tiers:
        if quantity >= threshold:
            return rate
    return 0.0


def step_value(value: float, steps: Sequence[tuple[float, float]], default: float) -> float:
    """按上限阶梯查找取值.

    Args:
        value: 度量值
        steps: (上限, 取值) 列表，上限从小到大
        default: 超出所有上限时的取值

    Returns:
        第一个满足 value <= 上限 的取值
    """
    for limit, result in steps:
        if value <= limit:
            return result
    return default


class PriceBuilder:
    """报价构建器.

    逐项记录乘数、折扣和附加费，最终生成带明细的报价。

    Example:
        >>> builder = PriceBuilder(base_price=50, price_per_unit=0.5, quantity=1000)
        >>> builder.multiply("sides", 1.0)
        >>> builder.discount(0.15)
        >>> builder.build().total
        467.5
    """

    def __init__(
        self,
        base_price: float,
        price_per_unit: float,
        quantity: int,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self.base_price = base_price
        self.price_per_unit = price_per_unit
        self.quantity = quantity
        self.currency = currency

        self._multipliers: dict[str, float] = {}
        self._discount_rate = 0.0
        self._surcharges: dict[str, float] = {}
        self.details: dict[str, Any] = {}

    def multiply(self, name: str, factor: float) -> "PriceBuilder":
        """记录一个乘数（同名乘数相乘累积）."""
        self._multipliers[name] = self._multipliers.get(name, 1.0) * factor
        return self

    def add_to_multiplier(self, name: str, increment: float) -> "PriceBuilder":
        """在乘数上加一个增量（乘数初始为 1）."""
        self._multipliers[name] = self._multipliers.get(name, 1.0) + increment
        return self

    def discount(self, rate: float) -> "PriceBuilder":
        """设置数量折扣率."""
        self._discount_rate = max(0.0, min(1.0, rate))
        return self

    def surcharge(self, name: str, amount: float) -> "PriceBuilder":
        """记录一项固定附加费（同名累加）."""
        if amount:
            self._surcharges[name] = self._surcharges.get(name, 0.0) + amount
        return self

    def detail(self, key: str, value: Any) -> "PriceBuilder":
        """记录说明性明细."""
        self.details[key] = value
        return self

    @property
    def multiplier(self) -> float:
        """全部乘数之积."""
        result = 1.0
        for factor in self._multipliers.values():
            result *= factor
        return result

    def build(self, extra: Optional[dict[str, Any]] = None) -> PriceQuote:
        """计算报价.

        Args:
            extra: 附加到明细中的产品专用条目

        Returns:
            PriceQuote，total 非负且保留两位小数
        """
        base_cost = self.base_price + self.price_per_unit * self.quantity
        subtotal = base_cost * self.multiplier
        discount = subtotal * self._discount_rate
        surcharges = sum(self._surcharges.values())
        total = max(0.0, subtotal - discount + surcharges)

        breakdown: dict[str, Any] = {
            "base_price": round_money(self.base_price),
            "price_per_unit": self.price_per_unit,
            "quantity": self.quantity,
            "base_cost": round_money(base_cost),
            "multipliers": {name: round(factor, 4) for name, factor in self._multipliers.items()},
            "total_multiplier": round(self.multiplier, 4),
            "subtotal": round_money(subtotal),
            "discount_rate": self._discount_rate,
            "discount": round_money(discount),
            "surcharges": {name: round_money(amount) for name, amount in self._surcharges.items()},
            "total": round_money(total),
            "details": dict(self.details),
        }
        if extra:
            breakdown.update(extra)
        return PriceQuote(total=round_money(total), breakdown=breakdown, currency=self.currency)
