"""
Helper builders shared by the test modules.
Profiles are pinned to BASE_YEAR so projected calendar years are stable.
"""
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from trajectory_lab.models import (
    FinancialProfile, Assumptions, IncomeSource, IncomeType, Asset, AssetType,
)
from trajectory_lab.schemas import Trajectory, TrajectoryYear, TrajectorySummary, YearDelta
from trajectory_lab.money import dollars_to_cents
from trajectory_lab.tax_config import FilingStatus

BASE_YEAR = 2024


def make_assumptions(**overrides) -> Assumptions:
    values = dict(
        inflation_rate=0.03,
        market_return=0.07,
        home_appreciation=0.03,
        salary_growth=0.02,
        retirement_withdrawal_rate=0.04,
        income_replacement_ratio=0.80,
        life_expectancy=40,
        current_age=30,
        filing_status=FilingStatus.SINGLE,
        state="CA",
        base_year=BASE_YEAR,
    )
    values.update(overrides)
    return Assumptions(**values)

def make_salary(dollars: float = 100000, **overrides) -> IncomeSource:
    values = dict(name="Salary", type=IncomeType.SALARY, amount=dollars_to_cents(dollars))
    values.update(overrides)
    return IncomeSource(**values)

def make_401k(balance_dollars: float, monthly_dollars: float, **overrides) -> Asset:
    values = dict(
        name="401k",
        type=AssetType.RETIREMENT_PRETAX,
        balance=dollars_to_cents(balance_dollars),
        monthly_contribution=dollars_to_cents(monthly_dollars),
        expected_return=0.07,
    )
    values.update(overrides)
    return Asset(**values)

def make_profile(**overrides) -> FinancialProfile:
    assumptions = overrides.pop("assumptions", None) or make_assumptions()
    return FinancialProfile(name="Test Profile", assumptions=assumptions, **overrides)

def make_year(year: int, net_worth_dollars: float) -> TrajectoryYear:
    """Minimal trajectory year: $80k income, $50k debt, $21k of taxes."""
    return TrajectoryYear(
        year=year,
        age=30 + (year - BASE_YEAR),
        gross_income=dollars_to_cents(80000),
        tax_federal=dollars_to_cents(12000),
        tax_state=dollars_to_cents(3000),
        tax_fica=dollars_to_cents(6000),
        total_debt=dollars_to_cents(50000),
        total_assets=dollars_to_cents(net_worth_dollars + 50000),
        net_worth=dollars_to_cents(net_worth_dollars),
        total_work_hours=2080,
        savings_rate=0.15,
    )

def make_trajectory(
    years: List[Tuple[int, float]],
    retirement_year: Optional[int] = 2050,
    **summary_overrides
) -> Trajectory:
    summary_values = dict(
        total_years=len(years),
        retirement_year=retirement_year,
        total_lifetime_interest=dollars_to_cents(100000),
        net_worth_at_retirement=dollars_to_cents(1000000),
        total_lifetime_work_hours=50000,
        net_worth_at_end=dollars_to_cents(2000000),
    )
    summary_values.update(summary_overrides)
    return Trajectory(
        profile_id="test-profile",
        generated_at=datetime.now(timezone.utc),
        years=[make_year(year, net_worth) for year, net_worth in years],
        summary=TrajectorySummary(**summary_values),
    )

def make_deltas(net_worth_deltas: List[int], start_year: int = BASE_YEAR) -> List[YearDelta]:
    return [
        YearDelta(
            year=start_year + i,
            net_worth_delta=delta,
            income_delta=1000,
            taxes_delta=-500,
        )
        for i, delta in enumerate(net_worth_deltas)
    ]
