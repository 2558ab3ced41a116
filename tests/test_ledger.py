"""Tests for unit/price ledgers and proportional deductions."""

import pytest
from unitlinked_sim_hu import LedgerAmounts, LedgerBook, LedgerKind


class TestLedgerBook:
    def setup_method(self):
        self.book = LedgerBook()
        self.book.deposit_split(1000, 0.75)

    def test_deposit_split(self):
        assert self.book.client.value == pytest.approx(250)
        assert self.book.invested.value == pytest.approx(750)
        assert self.book.total == pytest.approx(1000)

    def test_client_ledger_does_not_compound(self):
        interest = self.book.compound(1.2, 1.0)
        assert interest.invested == pytest.approx(150)
        assert interest.client == 0
        assert self.book.client.value == pytest.approx(250)
        assert self.book.invested.value == pytest.approx(900)

    def test_fee_keeps_ledger_ratio(self):
        split = self.book.apply_fee(100)
        assert split.total == pytest.approx(100)
        assert split.client == pytest.approx(25)
        assert split.invested == pytest.approx(75)
        assert self.book.client.value / self.book.invested.value == pytest.approx(250 / 750)

    def test_fee_rate(self):
        split = self.book.apply_fee_rate(0.1)
        assert split.total == pytest.approx(100)
        assert self.book.total == pytest.approx(900)

    def test_fee_capped_at_total(self):
        split = self.book.apply_fee(5000)
        assert split.total == pytest.approx(1000)
        assert self.book.total == pytest.approx(0)

    def test_withdrawal_returns_amount(self):
        assert self.book.apply_withdrawal(400) == pytest.approx(400)
        assert self.book.total == pytest.approx(600)

    def test_negative_amounts_ignored(self):
        assert self.book.apply_fee(-10).total == 0
        assert self.book.total == pytest.approx(1000)

    def test_ledger_fees_capped_per_ledger(self):
        applied = self.book.apply_ledger_fees(LedgerAmounts(client=1000, invested=75))
        assert applied.client == pytest.approx(250)
        assert applied.invested == pytest.approx(75)
        assert self.book.client.value == pytest.approx(0)
        assert self.book.invested.value == pytest.approx(675)

    def test_bonus_goes_to_invested_by_default(self):
        assert self.book.apply_bonus(50) == 50
        assert self.book.invested.value == pytest.approx(800)

    def test_bonus_to_tax_bonus_ledger(self):
        self.book.apply_bonus(50, LedgerKind.TAX_BONUS)
        assert self.book.tax_bonus.value == pytest.approx(50)

    def test_units_after_price_move(self):
        self.book.compound(2.0, 1.0)
        self.book.invested.deposit(100)
        assert self.book.invested.units == pytest.approx(750 + 50)


class TestLedgerAmounts:
    def test_add_and_total(self):
        a = LedgerAmounts(1, 2, 3)
        a.add(LedgerAmounts(1, 1, 1))
        assert a.total == 9

    def test_add_to(self):
        a = LedgerAmounts()
        a.add_to(LedgerKind.TAX_BONUS, 5)
        assert a.tax_bonus == 5
