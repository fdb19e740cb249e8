from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .currency import Currency

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class Money:
    """金額（通貨情報含む）"""

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def add(self, other: Money) -> Money:
        """金額を加算する"""
        if self.currency != other.currency:
            raise ValueError("Cannot add money with different currencies")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def multiply(self, factor: int) -> Money:
        """人数などの整数倍を計算する"""
        return Money(amount=self.amount * factor, currency=self.currency)

    def divide(self, divisor: int) -> Money:
        """等分する（1セント単位で四捨五入）"""
        if divisor <= 0:
            raise ValueError("Divisor must be positive")
        amount = (self.amount / divisor).quantize(_CENT, rounding=ROUND_HALF_UP)
        return Money(amount=amount, currency=self.currency)

    def ratio(self, rate: Decimal) -> Money:
        """料率を掛けた金額（手数料など）"""
        amount = (self.amount * rate).quantize(_CENT, rounding=ROUND_HALF_UP)
        return Money(amount=amount, currency=self.currency)

    @classmethod
    def zero(cls, currency: Currency) -> Money:
        return cls(Decimal("0"), currency)

    @classmethod
    def eur(cls, amount: Decimal) -> Money:
        """ユーロで Money を生成"""
        return cls(amount, Currency.eur())
