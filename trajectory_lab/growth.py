from typing import List, Optional
from pydantic import BaseModel

from .models import Asset
from .money import round_cents
from .schemas import AssetState

class AssetGrowth(BaseModel):
    starting_balance: int
    contributions: int
    employer_match: int
    growth: int
    ending_balance: int

class RetirementReadiness(BaseModel):
    is_ready: bool
    monthly_income: int           # sustainable monthly withdrawal
    required_nest_egg: Optional[int] = None  # None when the withdrawal rate is zero
    shortfall: Optional[int] = None


def calculate_employer_match(asset: Asset, annual_salary: int) -> int:
    """
    Match on the employee's own contribution, up to match_limit of salary.
    Zero when either match parameter is missing.
    """
    if asset.employer_match is None or asset.match_limit is None:
        return 0
    max_matchable = round_cents(annual_salary * asset.match_limit)
    matchable = min(asset.annual_contribution, max_matchable)
    return round_cents(matchable * asset.employer_match)

def calculate_asset_year_with_match(
    asset: Asset,
    annual_salary: int,
    default_return: float,
    starting_balance: Optional[int] = None
) -> AssetGrowth:
    """
    One year of growth. Contributions are assumed to arrive evenly, so
    returns are earned on the starting balance plus half the year's money.
    """
    balance = asset.balance if starting_balance is None else starting_balance
    expected_return = asset.expected_return if asset.expected_return is not None else default_return

    contributions = asset.annual_contribution
    employer_match = calculate_employer_match(asset, annual_salary)
    total_contribution = contributions + employer_match

    growth = round_cents((balance + total_contribution / 2) * expected_return)

    return AssetGrowth(
        starting_balance=balance,
        contributions=contributions,
        employer_match=employer_match,
        growth=growth,
        ending_balance=balance + total_contribution + growth,
    )

def asset_growth_to_state(asset_id: str, growth: AssetGrowth) -> AssetState:
    return AssetState(
        asset_id=asset_id,
        balance=growth.ending_balance,
        contributions_this_year=growth.contributions,
        growth_this_year=growth.growth,
        employer_match_this_year=growth.employer_match,
    )

def project_asset_over_years(
    asset: Asset,
    years: int,
    annual_salary: int,
    default_return: float
) -> List[AssetGrowth]:
    """Compound an asset for several years at a constant salary."""
    results: List[AssetGrowth] = []
    balance = asset.balance
    for _ in range(years):
        year_growth = calculate_asset_year_with_match(asset, annual_salary, default_return, balance)
        results.append(year_growth)
        balance = year_growth.ending_balance
    return results

def calculate_retirement_readiness(
    total_retirement_assets: int,
    desired_annual_income: float,
    withdrawal_rate: float
) -> RetirementReadiness:
    """
    Safe-withdrawal check: ready when total * rate covers the desired income.
    With a zero withdrawal rate nothing can be drawn, so only a zero
    desired income counts as ready.
    """
    if withdrawal_rate <= 0:
        is_ready = desired_annual_income <= 0
        return RetirementReadiness(
            is_ready=is_ready,
            monthly_income=0,
            required_nest_egg=None,
            shortfall=0 if is_ready else None,
        )

    sustainable_annual = total_retirement_assets * withdrawal_rate
    required = round_cents(desired_annual_income / withdrawal_rate)
    return RetirementReadiness(
        is_ready=sustainable_annual >= desired_annual_income,
        monthly_income=round_cents(sustainable_annual / 12),
        required_nest_egg=required,
        shortfall=max(0, required - total_retirement_assets),
    )
