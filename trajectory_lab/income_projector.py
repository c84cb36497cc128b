from typing import List
from pydantic import BaseModel

from .models import IncomeSource, IncomeType, MonthYear
from .money import round_cents

WEEKS_PER_YEAR = 52

class IncomeProjection(BaseModel):
    income_id: str
    amount: int = 0
    hours_worked: int = 0
    is_active: bool = False
    months_active: int = 0

class YearlyIncomeProjection(BaseModel):
    year: int
    total_income: int = 0
    total_hours: int = 0
    incomes: List[IncomeProjection] = []
    ended_this_year: List[str] = []  # ids of sources whose end date falls in this year

class LifetimeIncome(BaseModel):
    total_income: int = 0
    total_hours: int = 0
    average_annual: int = 0


def calculate_annual_income(income: IncomeSource) -> int:
    """Hourly sources are annualized as rate * hours/week * 52."""
    if income.type == IncomeType.HOURLY:
        return round_cents(income.amount * income.hours_per_week * WEEKS_PER_YEAR)
    return income.amount

def calculate_annual_hours(income: IncomeSource) -> float:
    return income.hours_per_week * WEEKS_PER_YEAR

def is_income_active(income: IncomeSource, date: MonthYear) -> bool:
    """End dates are inclusive."""
    if income.end_date is None:
        return True
    end = income.end_date
    return date.year < end.year or (date.year == end.year and date.month <= end.month)

def project_income(
    income: IncomeSource,
    target_year: int,
    base_year: int,
    default_growth_rate: float
) -> IncomeProjection:
    """
    Project one source's gross amount and hours for target_year.

    A source is active in any year up to and including the year of its end
    date; in that final year amount and hours are prorated by end_month / 12.
    """
    if not is_income_active(income, MonthYear(month=1, year=target_year)):
        return IncomeProjection(income_id=income.id)

    months_active = 12
    if income.end_date is not None and income.end_date.year == target_year:
        months_active = income.end_date.month

    years_elapsed = target_year - base_year
    growth_rate = income.expected_growth if income.expected_growth > 0 else default_growth_rate
    growth_multiplier = (1 + growth_rate) ** years_elapsed if years_elapsed > 0 else 1

    projected_annual = round_cents(calculate_annual_income(income) * growth_multiplier)
    amount = round_cents(projected_annual * (months_active / 12))
    hours_worked = round_cents(calculate_annual_hours(income) * (months_active / 12))

    return IncomeProjection(
        income_id=income.id,
        amount=amount,
        hours_worked=hours_worked,
        is_active=True,
        months_active=months_active,
    )

def project_all_income(
    incomes: List[IncomeSource],
    target_year: int,
    base_year: int,
    default_growth_rate: float
) -> YearlyIncomeProjection:
    projections = [project_income(income, target_year, base_year, default_growth_rate) for income in incomes]
    ended_this_year = [
        income.id for income in incomes
        if income.end_date is not None and income.end_date.year == target_year
    ]
    return YearlyIncomeProjection(
        year=target_year,
        total_income=sum(p.amount for p in projections),
        total_hours=sum(p.hours_worked for p in projections),
        incomes=projections,
        ended_this_year=ended_this_year,
    )

def project_income_over_years(
    incomes: List[IncomeSource],
    start_year: int,
    years: int,
    default_growth_rate: float
) -> List[YearlyIncomeProjection]:
    return [
        project_all_income(incomes, start_year + offset, start_year, default_growth_rate)
        for offset in range(years)
    ]

def find_last_income_year(
    incomes: List[IncomeSource],
    start_year: int,
    default_growth_rate: float = 0.02,
    max_years: int = 100
) -> int:
    """Latest year within max_years that still has income; start_year if none."""
    for offset in range(max_years - 1, -1, -1):
        year = start_year + offset
        if project_all_income(incomes, year, start_year, default_growth_rate).total_income > 0:
            return year
    return start_year

def calculate_effective_hourly_rate(net_income: int, hours_worked: int) -> int:
    if hours_worked == 0:
        return 0
    return round_cents(net_income / hours_worked)

def calculate_lifetime_income(
    incomes: List[IncomeSource],
    start_year: int,
    years: int,
    default_growth_rate: float
) -> LifetimeIncome:
    projections = project_income_over_years(incomes, start_year, years, default_growth_rate)
    total_income = sum(p.total_income for p in projections)
    total_hours = sum(p.total_hours for p in projections)
    years_with_income = len([p for p in projections if p.total_income > 0])
    average_annual = round_cents(total_income / years_with_income) if years_with_income > 0 else 0
    return LifetimeIncome(total_income=total_income, total_hours=total_hours, average_annual=average_annual)
