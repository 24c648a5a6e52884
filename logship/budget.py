"""Budget snapshot records shipped on the spend-reporting schedule.

The figures themselves come from the cloud accounting API; this module only
shapes them into the log record the schedule sends.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .models.datatypes import LogRecord


def billing_period(day: date) -> str:
    """Return the `yyyyMM` billing period of the month containing `day`."""

    return f"{day.year:04d}{day.month:02d}"


def format_day(day: date) -> str:
    """Return `day` in `MM-dd-yyyy` form."""

    return f"{day.month:02d}-{day.day:02d}-{day.year:04d}"


@dataclass(frozen=True, slots=True)
class BudgetSnapshot:
    """Budget and spend figures for one reporting day.

    Attributes:
        budget_amount: Configured budget for the billing period.
        spend: Actual spend so far in the billing period.
        day: Reporting day in `MM-dd-yyyy` form.
        billing_period: Billing period in `yyyyMM` form.
    """

    budget_amount: int | float
    spend: int | float
    day: str
    billing_period: str

    @classmethod
    def for_day(
        cls,
        budget_amount: int | float,
        spend: int | float,
        day: date,
    ) -> BudgetSnapshot:
        """Build a snapshot whose day and period labels derive from `day`."""

        return cls(
            budget_amount=budget_amount,
            spend=spend,
            day=format_day(day),
            billing_period=billing_period(day),
        )

    def as_log_record(self) -> LogRecord:
        """Return the record fields in their shipped order."""

        return {
            "Budget": self.budget_amount,
            "Day": self.day,
            "Period": self.billing_period,
            "Spend": self.spend,
        }
