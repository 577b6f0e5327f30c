"""
Per-employee, per-category leave credit balances.

All arithmetic is Decimal quantized to 0.001. Mutations only flush; the
caller's transaction decides whether they stick.
"""
from decimal import Decimal
from typing import Dict, Optional, Union

from sqlalchemy import select

from hr201.models.credit_balance import CreditBalance
from hr201.models.leave_type import CreditCategory
from hr201.services.base import BaseService
from hr201.services.results import RejectionReason, ValidationResult

THOUSANDTH = Decimal("0.001")

Category = Union[CreditCategory, str]


def to_credit(amount) -> Decimal:
    """Coerce to a 3-place Decimal. Floats go through str() to keep what was typed."""
    if isinstance(amount, float):
        amount = str(amount)
    return Decimal(amount).quantize(THOUSANDTH)


def _category_value(category: Category) -> str:
    return CreditCategory(category).value


class CreditLedger(BaseService):

    def _get_row(self, employee_id: int, category: Category, lock: bool = False) -> Optional[CreditBalance]:
        stmt = select(CreditBalance).where(
            CreditBalance.employee_id == employee_id,
            CreditBalance.category == _category_value(category),
        )
        if lock:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_balance(self, employee_id: int, category: Category) -> Decimal:
        row = self._get_row(employee_id, category)
        if row is None:
            return Decimal("0.000")
        return to_credit(row.amount)

    def get_balances(self, employee_id: int) -> Dict[str, Decimal]:
        """Every category, zero where the employee has no row yet."""
        balances = {c.value: Decimal("0.000") for c in CreditCategory}
        rows = self.db.execute(
            select(CreditBalance).where(CreditBalance.employee_id == employee_id)
        ).scalars()
        for row in rows:
            balances[row.category] = to_credit(row.amount)
        return balances

    def check(self, employee_id: int, category: Category, amount) -> ValidationResult:
        """Read-only sufficiency test, same rule as reserve()."""
        amount = to_credit(amount)
        balance = self.get_balance(employee_id, category)
        return self._sufficiency(employee_id, category, balance, amount)

    def reserve(self, employee_id: int, category: Category, amount) -> ValidationResult:
        """
        Check-then-decrement under a row lock. Succeeds iff balance >= amount;
        nothing is deducted on failure.
        """
        amount = to_credit(amount)
        if amount < 0:
            raise ValueError("Reserve amount must not be negative")

        row = self._get_row(employee_id, category, lock=True)
        balance = to_credit(row.amount) if row is not None else Decimal("0.000")
        result = self._sufficiency(employee_id, category, balance, amount)
        if not result.accepted or amount == 0:
            return result

        row.amount = (balance - amount).quantize(THOUSANDTH)
        # Version check happens here; a concurrent writer raises StaleDataError
        self.db.flush()
        self._logger.info(
            f"Reserved {amount} {_category_value(category)} credit for employee {employee_id}",
            extra={"employee_id": employee_id, "balance_after": str(row.amount)},
        )
        return ValidationResult.accept(balance_after=str(row.amount))

    def release(self, employee_id: int, category: Category, amount) -> Decimal:
        """Credit back a previous reservation. Creates the row if it is missing."""
        amount = to_credit(amount)
        if amount < 0:
            raise ValueError("Release amount must not be negative")

        row = self._get_row(employee_id, category, lock=True)
        if row is None:
            row = CreditBalance(employee_id=employee_id, category=_category_value(category), amount=Decimal("0.000"))
            self.db.add(row)
        row.amount = (to_credit(row.amount) + amount).quantize(THOUSANDTH)
        self.db.flush()
        self._logger.info(
            f"Released {amount} {_category_value(category)} credit to employee {employee_id}",
            extra={"employee_id": employee_id, "balance_after": str(row.amount)},
        )
        return to_credit(row.amount)

    def set_balance(self, employee_id: int, category: Category, amount) -> Decimal:
        """HR manual adjustment: overwrite the balance."""
        amount = to_credit(amount)
        if amount < 0:
            raise ValueError("Balance must not be negative")

        row = self._get_row(employee_id, category, lock=True)
        if row is None:
            row = CreditBalance(employee_id=employee_id, category=_category_value(category))
            self.db.add(row)
        row.amount = amount
        self.db.flush()
        return amount

    def _sufficiency(self, employee_id, category, balance: Decimal, amount: Decimal) -> ValidationResult:
        if balance >= amount:
            return ValidationResult.accept(balance=str(balance), requested=str(amount))
        shortfall = (amount - balance).quantize(THOUSANDTH)
        category_name = _category_value(category)
        return ValidationResult.reject(
            RejectionReason.INSUFFICIENT_CREDIT,
            f"Insufficient {category_name} balance: available {balance}, requested {amount}, short by {shortfall}.",
            kind="balance",
            employee_id=employee_id,
            category=category_name,
            balance=str(balance),
            requested=str(amount),
            shortfall=str(shortfall),
        )
