from decimal import Decimal

import pytest

from hr201.models.leave_type import CreditCategory
from hr201.services.credit_ledger import CreditLedger, to_credit
from hr201.services.results import RejectionReason


def test_get_balance_defaults_to_zero(db_session, employee_b):
    ledger = CreditLedger(db_session)
    assert ledger.get_balance(employee_b.id, CreditCategory.VACATION) == Decimal("0.000")
    assert ledger.get_balances(employee_b.id) == {"Vacation": Decimal("0.000"), "Sick": Decimal("0.000")}


def test_reserve_deducts_when_sufficient(db_session, employee_a):
    ledger = CreditLedger(db_session)
    result = ledger.reserve(employee_a.id, CreditCategory.VACATION, Decimal("2.000"))
    db_session.commit()

    assert result.accepted
    assert ledger.get_balance(employee_a.id, CreditCategory.VACATION) == Decimal("3.000")


def test_reserve_exact_balance_is_accepted(db_session, employee_a):
    ledger = CreditLedger(db_session)
    result = ledger.reserve(employee_a.id, "Sick", Decimal("2.000"))
    assert result.accepted
    assert ledger.get_balance(employee_a.id, "Sick") == Decimal("0.000")


def test_reserve_one_thousandth_short_is_rejected(db_session, employee_a):
    ledger = CreditLedger(db_session)
    ledger.set_balance(employee_a.id, "Sick", Decimal("0.999"))
    db_session.commit()

    result = ledger.reserve(employee_a.id, "Sick", Decimal("1.000"))

    assert not result.accepted
    assert result.reason == RejectionReason.INSUFFICIENT_CREDIT
    assert result.details["category"] == "Sick"
    assert result.details["shortfall"] == "0.001"
    # Nothing deducted on failure
    assert ledger.get_balance(employee_a.id, "Sick") == Decimal("0.999")


def test_release_restores_balance(db_session, employee_a):
    ledger = CreditLedger(db_session)
    ledger.reserve(employee_a.id, "Vacation", Decimal("2.000"))
    ledger.release(employee_a.id, "Vacation", Decimal("2.000"))
    db_session.commit()
    assert ledger.get_balance(employee_a.id, "Vacation") == Decimal("5.000")


def test_release_creates_missing_row(db_session, employee_b):
    ledger = CreditLedger(db_session)
    assert ledger.release(employee_b.id, "Sick", 1) == Decimal("1.000")


def test_repeated_daily_deductions_do_not_drift(db_session, employee_a):
    ledger = CreditLedger(db_session)
    ledger.set_balance(employee_a.id, "Vacation", Decimal("1.000"))
    for _ in range(10):
        ledger.reserve(employee_a.id, "Vacation", Decimal("0.100"))
    db_session.commit()
    assert ledger.get_balance(employee_a.id, "Vacation") == Decimal("0.000")


def test_negative_amounts_are_refused(db_session, employee_a):
    ledger = CreditLedger(db_session)
    with pytest.raises(ValueError):
        ledger.reserve(employee_a.id, "Vacation", Decimal("-1"))
    with pytest.raises(ValueError):
        ledger.set_balance(employee_a.id, "Vacation", Decimal("-0.001"))


def test_to_credit_keeps_three_places():
    assert to_credit(0.1) == Decimal("0.100")
    assert to_credit("2") == Decimal("2.000")
