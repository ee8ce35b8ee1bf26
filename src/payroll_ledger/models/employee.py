"""Employee roster model."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_ledger.core.payment_methods import normalize_payment_method
from payroll_ledger.core.types import Employee, EmployeeStatus
from payroll_ledger.models.base import Base, TimestampMixin


class EmployeeRecord(Base, TimestampMixin):
    """Employee with pay eligibility attributes. Written by HR, read here."""

    __tablename__ = "employee"

    employee_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    weekly_rate: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    payment_status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    payment_start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String, nullable=True)
    account_last_four: Mapped[str | None] = mapped_column(String(4), nullable=True)
    default_days_worked: Mapped[int] = mapped_column(Integer, nullable=False, default=5)

    __table_args__ = (
        CheckConstraint(
            "payment_status IN ('active', 'paused', 'leaving', 'laid_off')",
            name="employee_payment_status_check",
        ),
        CheckConstraint("weekly_rate >= 0", name="employee_weekly_rate_check"),
        CheckConstraint(
            "default_days_worked BETWEEN 0 AND 5",
            name="employee_default_days_check",
        ),
    )

    def to_domain(self) -> Employee:
        """Convert to the read-only roster view."""
        return Employee(
            employee_id=self.employee_id,
            name=self.name,
            weekly_rate=Decimal(self.weekly_rate),
            status=EmployeeStatus(self.payment_status),
            payment_start_date=self.payment_start_date,
            payment_method=normalize_payment_method(self.payment_method),
            bank_name=self.bank_name,
            account_last_four=self.account_last_four,
            default_days_worked=self.default_days_worked,
        )

    @classmethod
    def from_domain(cls, employee: Employee) -> EmployeeRecord:
        return cls(
            employee_id=employee.employee_id,
            name=employee.name,
            weekly_rate=employee.weekly_rate,
            payment_status=employee.status.value,
            payment_start_date=employee.payment_start_date,
            payment_method=employee.payment_method.value if employee.payment_method else None,
            bank_name=employee.bank_name,
            account_last_four=employee.account_last_four,
            default_days_worked=employee.default_days_worked,
        )
