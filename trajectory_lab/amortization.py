"""
Loan amortization for a single debt.

Payoff horizons are either Finite(value) or NEVER_PAYS_OFF. The latter
converts to float("inf") so it can still be compared against infinity,
but it cannot take part in arithmetic by accident.
"""
import math
from datetime import datetime
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict

from .models import Debt
from .money import round_cents


class Finite(BaseModel):
    model_config = ConfigDict(frozen=True)
    value: int

    def __float__(self) -> float:
        return float(self.value)

class NeverPaysOff(BaseModel):
    """The payment does not cover the monthly interest."""
    model_config = ConfigDict(frozen=True)

    def __float__(self) -> float:
        return math.inf

NEVER_PAYS_OFF = NeverPaysOff()

PayoffHorizon = Union[Finite, NeverPaysOff]


class AmortizationPayment(BaseModel):
    payment_number: int
    principal: int
    interest: int
    total_payment: int
    remaining_balance: int
    cumulative_interest: int

class YearlyDebtSummary(BaseModel):
    year: int
    starting_balance: int
    ending_balance: int
    principal_paid: int
    interest_paid: int
    total_paid: int
    is_paid_off: bool
    payoff_month: Optional[int] = None

class ExtraPaymentSavings(BaseModel):
    months_saved: int = 0
    interest_saved: int = 0


def calculate_monthly_payment(principal: int, annual_rate: float, term_months: int) -> int:
    """Standard annuity payment, rounded to the cent."""
    if term_months <= 0:
        return 0
    if annual_rate == 0:
        return round_cents(principal / term_months)

    monthly_rate = annual_rate / 12
    factor = (1 + monthly_rate) ** term_months
    payment = (principal * monthly_rate * factor) / (factor - 1)
    return round_cents(payment)

def calculate_months_to_payoff(principal: int, annual_rate: float, monthly_payment: int) -> PayoffHorizon:
    if principal <= 0:
        return Finite(value=0)
    if monthly_payment <= 0:
        return NEVER_PAYS_OFF

    monthly_rate = annual_rate / 12
    if monthly_payment <= principal * monthly_rate:
        return NEVER_PAYS_OFF

    if annual_rate == 0:
        return Finite(value=math.ceil(principal / monthly_payment))

    # n = -log(1 - P*r/PMT) / log(1 + r)
    months = -math.log(1 - (principal * monthly_rate) / monthly_payment) / math.log(1 + monthly_rate)
    return Finite(value=math.ceil(months))

def calculate_total_interest(principal: int, annual_rate: float, monthly_payment: int) -> PayoffHorizon:
    """Interest over the life of the loan; NEVER_PAYS_OFF propagates."""
    months = calculate_months_to_payoff(principal, annual_rate, monthly_payment)
    if isinstance(months, NeverPaysOff):
        return NEVER_PAYS_OFF
    return Finite(value=monthly_payment * months.value - principal)

def generate_amortization_schedule(
    principal: int,
    annual_rate: float,
    monthly_payment: int,
    max_months: int = 360
) -> List[AmortizationPayment]:
    """
    Month-by-month schedule. The payment that would overshoot the balance,
    and the payment in month max_months, are clamped to the remaining
    balance so the schedule always ends at exactly zero.
    """
    schedule: List[AmortizationPayment] = []
    balance = principal
    cumulative_interest = 0
    monthly_rate = annual_rate / 12

    month = 1
    while month <= max_months and balance > 0:
        interest = round_cents(balance * monthly_rate)
        principal_payment = monthly_payment - interest

        if principal_payment >= balance or month == max_months:
            principal_payment = balance

        balance -= principal_payment
        cumulative_interest += interest

        schedule.append(AmortizationPayment(
            payment_number=month,
            principal=principal_payment,
            interest=interest,
            total_payment=principal_payment + interest,
            remaining_balance=balance,
            cumulative_interest=cumulative_interest,
        ))
        month += 1

    return schedule

def calculate_debt_year(
    starting_balance: int,
    annual_rate: float,
    monthly_payment: int,
    year: int
) -> YearlyDebtSummary:
    """
    Twelve months of payments on a carried balance.
    Only an overshooting payment is clamped; there is no end-of-horizon clamp here.
    """
    if starting_balance <= 0:
        return YearlyDebtSummary(
            year=year,
            starting_balance=0,
            ending_balance=0,
            principal_paid=0,
            interest_paid=0,
            total_paid=0,
            is_paid_off=True,
            payoff_month=None,
        )

    balance = starting_balance
    total_principal = 0
    total_interest = 0
    payoff_month = None
    monthly_rate = annual_rate / 12

    for month in range(1, 13):
        if balance <= 0:
            break
        interest = round_cents(balance * monthly_rate)
        principal_payment = monthly_payment - interest

        if principal_payment >= balance:
            principal_payment = balance
            payoff_month = month

        balance -= principal_payment
        total_principal += principal_payment
        total_interest += interest

    return YearlyDebtSummary(
        year=year,
        starting_balance=starting_balance,
        ending_balance=max(0, balance),
        principal_paid=total_principal,
        interest_paid=total_interest,
        total_paid=total_principal + total_interest,
        is_paid_off=balance <= 0,
        payoff_month=payoff_month,
    )

def project_debt_over_years(debt: Debt, years: int, start_year: Optional[int] = None) -> List[YearlyDebtSummary]:
    """Yearly summaries until the debt is paid off or years run out."""
    if start_year is None:
        start_year = datetime.now().year

    summaries: List[YearlyDebtSummary] = []
    balance = debt.principal
    for offset in range(years):
        if balance <= 0:
            break
        summary = calculate_debt_year(balance, debt.interest_rate, debt.actual_payment, start_year + offset)
        summaries.append(summary)
        balance = summary.ending_balance
    return summaries

def calculate_extra_payment_savings(
    principal: int,
    annual_rate: float,
    current_payment: int,
    extra_payment: int
) -> ExtraPaymentSavings:
    current_months = calculate_months_to_payoff(principal, annual_rate, current_payment)
    new_months = calculate_months_to_payoff(principal, annual_rate, current_payment + extra_payment)

    if isinstance(current_months, NeverPaysOff) or isinstance(new_months, NeverPaysOff):
        return ExtraPaymentSavings()

    current_interest = calculate_total_interest(principal, annual_rate, current_payment)
    new_interest = calculate_total_interest(principal, annual_rate, current_payment + extra_payment)

    return ExtraPaymentSavings(
        months_saved=current_months.value - new_months.value,
        interest_saved=current_interest.value - new_interest.value,
    )

def calculate_avalanche_order(debts: List[Debt]) -> List[Debt]:
    """Highest interest rate first; paid-off debts excluded."""
    return sorted((d for d in debts if d.principal > 0), key=lambda d: d.interest_rate, reverse=True)

def calculate_snowball_order(debts: List[Debt]) -> List[Debt]:
    """Smallest balance first; paid-off debts excluded."""
    return sorted((d for d in debts if d.principal > 0), key=lambda d: d.principal)

def calculate_avalanche_savings(debts: List[Debt], extra_monthly_payment: int) -> int:
    """
    Interest saved by putting the extra payment on the highest-rate debt.
    Does not roll payments over as debts are paid off.
    """
    ordered = calculate_avalanche_order(debts)
    if not ordered:
        return 0
    target = ordered[0]
    return calculate_extra_payment_savings(
        target.principal, target.interest_rate, target.actual_payment, extra_monthly_payment
    ).interest_saved
