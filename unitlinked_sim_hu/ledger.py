"""Unit/price ledgers composing one policy's value."""

from dataclasses import dataclass, field
from enum import StrEnum


class LedgerKind(StrEnum):
    CLIENT = "client"
    INVESTED = "invested"
    TAX_BONUS = "tax_bonus"


@dataclass
class LedgerAmounts:
    """One amount per ledger (fee split, interest, per-ledger year totals)."""

    client: float = 0.0
    invested: float = 0.0
    tax_bonus: float = 0.0

    @property
    def total(self) -> float:
        return self.client + self.invested + self.tax_bonus

    def add(self, other: "LedgerAmounts") -> None:
        self.client += other.client
        self.invested += other.invested
        self.tax_bonus += other.tax_bonus

    def add_to(self, kind: LedgerKind, amount: float) -> None:
        setattr(self, kind.value, getattr(self, kind.value) + amount)

    def scaled(self, factor: float) -> "LedgerAmounts":
        return LedgerAmounts(self.client * factor, self.invested * factor, self.tax_bonus * factor)


@dataclass
class Ledger:
    units: float = 0.0
    price: float = 1.0
    compounds: bool = True

    @property
    def value(self) -> float:
        return self.units * self.price

    def deposit(self, amount: float) -> float:
        """Buy units at the current price. Returns the amount credited."""
        if amount <= 0 or self.price <= 0:
            return 0.0
        self.units += amount / self.price
        return amount

    def scale(self, factor: float) -> None:
        self.units *= max(0.0, factor)

    def grow(self, factor: float) -> float:
        """Move the unit price by factor. Returns the value change."""
        if not self.compounds:
            return 0.0
        before = self.value
        self.price *= factor
        return self.value - before


@dataclass
class LedgerBook:
    """Client, invested and tax-bonus ledgers of one policy.

    The client ledger's price stays at 1. Every deduction goes through a
    single reduction factor per ledger, so value ratios between ledgers are
    unchanged by proportional fees.
    """

    client: Ledger = field(default_factory=lambda: Ledger(compounds=False))
    invested: Ledger = field(default_factory=Ledger)
    tax_bonus: Ledger = field(default_factory=Ledger)

    def ledger(self, kind: LedgerKind) -> Ledger:
        return getattr(self, kind.value)

    @property
    def total(self) -> float:
        return self.client.value + self.invested.value + self.tax_bonus.value

    def values(self) -> LedgerAmounts:
        return LedgerAmounts(self.client.value, self.invested.value, self.tax_bonus.value)

    def _reduce_proportionally(self, amount: float) -> LedgerAmounts:
        total = self.total
        applied = min(max(0.0, amount), total)
        if applied <= 0 or total <= 0:
            return LedgerAmounts()
        split = self.values().scaled(applied / total)
        factor = (total - applied) / total
        for ledger in (self.client, self.invested, self.tax_bonus):
            ledger.scale(factor)
        return split

    def apply_fee(self, amount: float) -> LedgerAmounts:
        """Deduct a fee across all ledgers by value share, capped at the total value."""
        return self._reduce_proportionally(amount)

    def apply_fee_rate(self, rate: float) -> LedgerAmounts:
        return self._reduce_proportionally(self.total * rate)

    def apply_withdrawal(self, amount: float) -> float:
        """Withdraw proportionally. Returns the amount actually withdrawn."""
        return self._reduce_proportionally(amount).total

    def apply_ledger_fees(self, fees: LedgerAmounts) -> LedgerAmounts:
        """Deduct a separate fee from each ledger, each capped at that ledger's value."""
        applied = LedgerAmounts()
        for kind in LedgerKind:
            ledger = self.ledger(kind)
            value = ledger.value
            fee = min(max(0.0, getattr(fees, kind.value)), value)
            if fee > 0 and value > 0:
                ledger.scale((value - fee) / value)
                applied.add_to(kind, fee)
        return applied

    def apply_bonus(self, amount: float, kind: LedgerKind = LedgerKind.INVESTED) -> float:
        return self.ledger(kind).deposit(amount)

    def deposit_split(self, net: float, invested_share: float) -> LedgerAmounts:
        """Split a net payment between the invested and client ledgers."""
        if net <= 0:
            return LedgerAmounts()
        return LedgerAmounts(
            client=self.client.deposit(net * (1 - invested_share)),
            invested=self.invested.deposit(net * invested_share),
        )

    def compound(self, invested_factor: float, tax_bonus_factor: float) -> LedgerAmounts:
        """Apply one day's growth. Returns the interest earned per ledger."""
        return LedgerAmounts(
            invested=self.invested.grow(invested_factor),
            tax_bonus=self.tax_bonus.grow(tax_bonus_factor),
        )
