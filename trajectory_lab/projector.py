"""
Multi-year trajectory projection.

Each year is computed by project_year, a pure step that takes the balances
carried out of the previous year and returns the next carried state along
with that year's TrajectoryYear and milestones. generate_trajectory folds
the step over every year from current_age up to life_expectancy.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple, Union, Literal
from pydantic import BaseModel, ConfigDict

from .models import FinancialProfile, Goal, GoalType, DebtType, AssetType
from .money import round_cents
from .schemas import (
    TrajectoryYear, DebtState, AssetState, Milestone, MilestoneType,
    TrajectorySummary, Trajectory,
)
from .tax_config import is_known_state
from .tax_engine import calculate_total_tax
from .amortization import calculate_debt_year
from .growth import calculate_asset_year_with_match, asset_growth_to_state, calculate_retirement_readiness
from .income_projector import project_all_income, calculate_effective_hourly_rate

logger = logging.getLogger(__name__)

# $100k, $250k, $500k, $1M, $2.5M, $5M, $10M
NET_WORTH_THRESHOLDS = [10000000, 25000000, 50000000, 100000000, 250000000, 500000000, 1000000000]


class NotYetReady(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal["not_yet_ready"] = "not_yet_ready"

class ReadyAsOf(BaseModel):
    model_config = ConfigDict(frozen=True)
    status: Literal["ready"] = "ready"
    year: int
    monthly_income: int

RetirementStatus = Union[NotYetReady, ReadyAsOf]

class ProjectionState(BaseModel):
    """Balances carried from one projected year into the next."""
    model_config = ConfigDict(frozen=True)

    debt_balances: Dict[str, int]
    asset_balances: Dict[str, int]
    retirement: RetirementStatus = NotYetReady()
    previous_year: Optional[TrajectoryYear] = None

    @classmethod
    def initial(cls, profile: FinancialProfile) -> "ProjectionState":
        return cls(
            debt_balances={debt.id: debt.principal for debt in profile.debts},
            asset_balances={asset.id: asset.balance for asset in profile.assets},
        )

class YearStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: ProjectionState
    year: TrajectoryYear
    milestones: List[Milestone]


def resolve_base_year(profile: FinancialProfile) -> int:
    if profile.assumptions.base_year is not None:
        return profile.assumptions.base_year
    return datetime.now().year

def generate_trajectory(profile: FinancialProfile, base_year: Optional[int] = None) -> Trajectory:
    """
    Project the profile one year at a time from current_age to life_expectancy.
    base_year is the calendar year matching current_age; it defaults to the
    profile's own base_year, then to the current calendar year.
    """
    if base_year is None:
        base_year = resolve_base_year(profile)
    if not is_known_state(profile.assumptions.state):
        logger.warning(
            "No tax configuration for state %s; state tax treated as zero", profile.assumptions.state
        )

    state = ProjectionState.initial(profile)
    years: List[TrajectoryYear] = []
    milestones: List[Milestone] = []

    for offset in range(profile.assumptions.projection_years):
        step = project_year(profile, state, offset, base_year)
        years.append(step.year)
        milestones.extend(step.milestones)
        state = step.state

    retirement_year = state.retirement.year if isinstance(state.retirement, ReadyAsOf) else None
    summary = generate_summary(profile, years, milestones, retirement_year, base_year)

    logger.info(
        "Generated trajectory for profile %s: %d years, %d milestones, retirement year %s",
        profile.id, len(years), len(milestones), retirement_year,
    )

    return Trajectory(
        profile_id=profile.id,
        generated_at=datetime.now(timezone.utc),
        years=years,
        milestones=milestones,
        summary=summary,
    )

def generate_quick_trajectory(
    profile: FinancialProfile,
    preview_years: int = 10,
    base_year: Optional[int] = None
) -> Trajectory:
    """Short projection for previews; the profile itself is left untouched."""
    assumptions = profile.assumptions.model_copy(
        update={"life_expectancy": profile.assumptions.current_age + preview_years}
    )
    return generate_trajectory(profile.model_copy(update={"assumptions": assumptions}), base_year)

def project_year(
    profile: FinancialProfile,
    state: ProjectionState,
    offset: int,
    base_year: int
) -> YearStep:
    assumptions = profile.assumptions
    year = base_year + offset
    age = assumptions.current_age + offset

    # 1. Income and taxes
    income = project_all_income(profile.incomes, year, base_year, assumptions.salary_growth)
    pre_tax_contributions = sum(
        asset.annual_contribution for asset in profile.assets
        if asset.type == AssetType.RETIREMENT_PRETAX
    )
    taxes = calculate_total_tax(
        income.total_income,
        assumptions.filing_status,
        assumptions.state,
        pre_tax_contributions,
    )

    # 2. Debts
    debt_states, total_debt_payment, total_interest_paid = _project_debts(profile, state, year)
    total_debt = sum(d.remaining_principal for d in debt_states)

    # 3. Assets
    asset_states = _project_assets(profile, state, income.total_income)
    total_assets = sum(a.balance for a in asset_states)

    # 4. Cash flow
    inflation_multiplier = (1 + assumptions.inflation_rate) ** offset
    total_obligations = round_cents(
        sum(o.amount * 12 for o in profile.obligations) * inflation_multiplier
    )
    total_contributions = sum(a.contributions_this_year + a.employer_match_this_year for a in asset_states)
    savings_rate = total_contributions / taxes.net_income if taxes.net_income > 0 else 0.0

    home_equity, ltv_ratio, paying_pmi = _housing_fields(profile, debt_states, offset)

    trajectory_year = TrajectoryYear(
        year=year,
        age=age,
        gross_income=income.total_income,
        tax_federal=taxes.federal_tax,
        tax_state=taxes.state_tax,
        tax_fica=taxes.total_fica,
        net_income=taxes.net_income,
        effective_tax_rate=taxes.effective_rate,
        total_work_hours=income.total_hours,
        effective_hourly_rate=calculate_effective_hourly_rate(taxes.net_income, income.total_hours),
        debts=debt_states,
        total_debt=total_debt,
        total_debt_payment=total_debt_payment,
        total_interest_paid=total_interest_paid,
        assets=asset_states,
        total_assets=total_assets,
        net_worth=total_assets - total_debt,
        total_obligations=total_obligations,
        discretionary_income=taxes.net_income - total_debt_payment - total_obligations,
        savings_rate=savings_rate,
        home_equity=home_equity,
        ltv_ratio=ltv_ratio,
        paying_pmi=paying_pmi,
    )

    logger.debug(
        "Year %s (age %s): gross=%s net=%s debt=%s assets=%s net_worth=%s",
        year, age, trajectory_year.gross_income, trajectory_year.net_income,
        total_debt, total_assets, trajectory_year.net_worth,
    )

    milestones = detect_milestones(profile, trajectory_year, state.previous_year)

    # 5. Retirement readiness is decided once and never revisited
    retirement = state.retirement
    if isinstance(retirement, NotYetReady):
        readiness = calculate_retirement_readiness(
            _retirement_assets_total(profile, trajectory_year),
            trajectory_year.net_income * assumptions.income_replacement_ratio,
            assumptions.retirement_withdrawal_rate,
        )
        if readiness.is_ready:
            retirement = ReadyAsOf(year=year, monthly_income=readiness.monthly_income)
            milestones.append(Milestone(
                year=year,
                month=1,
                type=MilestoneType.RETIREMENT_READY,
                description=f"Retirement ready - can sustain ${round_cents(readiness.monthly_income / 100)}/month",
                related_id=None,
            ))

    next_state = ProjectionState(
        debt_balances={d.debt_id: d.remaining_principal for d in debt_states},
        asset_balances={a.asset_id: a.balance for a in asset_states},
        retirement=retirement,
        previous_year=trajectory_year,
    )
    return YearStep(state=next_state, year=trajectory_year, milestones=milestones)

def _project_debts(
    profile: FinancialProfile,
    state: ProjectionState,
    year: int
) -> Tuple[List[DebtState], int, int]:
    """Returns (debt states, total paid this year, total interest this year)."""
    debt_states: List[DebtState] = []
    total_payment = 0
    total_interest = 0

    for debt in profile.debts:
        balance = state.debt_balances.get(debt.id, 0)
        if balance <= 0:
            debt_states.append(DebtState(
                debt_id=debt.id,
                remaining_principal=0,
                interest_paid_this_year=0,
                principal_paid_this_year=0,
                is_paid_off=True,
                payoff_month=None,
            ))
            continue

        debt_year = calculate_debt_year(balance, debt.interest_rate, debt.actual_payment, year)
        debt_states.append(DebtState(
            debt_id=debt.id,
            remaining_principal=debt_year.ending_balance,
            interest_paid_this_year=debt_year.interest_paid,
            principal_paid_this_year=debt_year.principal_paid,
            is_paid_off=debt_year.is_paid_off,
            payoff_month=debt_year.payoff_month,
        ))
        total_payment += debt_year.total_paid
        total_interest += debt_year.interest_paid

    return debt_states, total_payment, total_interest

def _project_assets(profile: FinancialProfile, state: ProjectionState, annual_salary: int) -> List[AssetState]:
    default_return = profile.assumptions.market_return
    return [
        asset_growth_to_state(
            asset.id,
            calculate_asset_year_with_match(asset, annual_salary, default_return, state.asset_balances.get(asset.id, 0)),
        )
        for asset in profile.assets
    ]

def _housing_fields(profile: FinancialProfile, debt_states: List[DebtState], offset: int) -> Tuple[int, float, bool]:
    """Home equity, LTV and PMI flag for the first mortgage; zeros without one."""
    mortgage = next((d for d in profile.debts if d.type == DebtType.MORTGAGE), None)
    if mortgage is None:
        return 0, 0.0, False

    mortgage_state = next((s for s in debt_states if s.debt_id == mortgage.id), None)
    mortgage_balance = mortgage_state.remaining_principal if mortgage_state else 0
    appreciated_value = round_cents(
        (mortgage.property_value or 0) * (1 + profile.assumptions.home_appreciation) ** offset
    )

    ltv_ratio = mortgage_balance / appreciated_value if appreciated_value > 0 else 0.0
    paying_pmi = mortgage.pmi_threshold is not None and ltv_ratio > mortgage.pmi_threshold
    return appreciated_value - mortgage_balance, ltv_ratio, paying_pmi

def _retirement_assets_total(profile: FinancialProfile, year: TrajectoryYear) -> int:
    retirement_ids = {asset.id for asset in profile.assets if asset.is_retirement_account}
    return sum(a.balance for a in year.assets if a.asset_id in retirement_ids)

def detect_milestones(
    profile: FinancialProfile,
    current: TrajectoryYear,
    previous: Optional[TrajectoryYear]
) -> List[Milestone]:
    milestones: List[Milestone] = []
    debt_names = {debt.id: debt.name for debt in profile.debts}

    # Debt payoffs
    for debt_state in current.debts:
        if debt_state.is_paid_off and debt_state.payoff_month is not None:
            milestones.append(Milestone(
                year=current.year,
                month=debt_state.payoff_month,
                type=MilestoneType.DEBT_PAYOFF,
                description=f"{debt_names.get(debt_state.debt_id) or 'Debt'} paid off",
                related_id=debt_state.debt_id,
            ))

    # PMI removal
    if previous is not None and previous.paying_pmi and not current.paying_pmi:
        mortgage = next((d for d in profile.debts if d.type == DebtType.MORTGAGE), None)
        if mortgage is not None:
            milestones.append(Milestone(
                year=current.year,
                month=1,
                type=MilestoneType.PMI_REMOVED,
                description="PMI removed - LTV below threshold",
                related_id=mortgage.id,
            ))

    # Net worth: only the lowest newly crossed threshold is recorded each year
    previous_net_worth = previous.net_worth if previous is not None else 0
    for threshold in NET_WORTH_THRESHOLDS:
        if previous_net_worth < threshold <= current.net_worth:
            milestones.append(Milestone(
                year=current.year,
                month=6,
                type=MilestoneType.NET_WORTH_MILESTONE,
                description=f"Net worth reached ${threshold // 100:,}",
                related_id=None,
            ))
            break

    # Goals due this year
    for goal in profile.goals:
        if goal.target_date is not None and goal.target_date.year == current.year:
            achieved = check_goal_achieved(goal, current, profile)
            milestones.append(Milestone(
                year=current.year,
                month=goal.target_date.month,
                type=MilestoneType.GOAL_ACHIEVED if achieved else MilestoneType.GOAL_MISSED,
                description=f"{goal.name} {'achieved' if achieved else 'missed'}",
                related_id=goal.id,
            ))

    return milestones

def check_goal_achieved(goal: Goal, year: TrajectoryYear, profile: FinancialProfile) -> bool:
    if goal.type == GoalType.DEBT_FREE:
        return year.total_debt == 0
    if goal.type in (GoalType.SAVINGS_TARGET, GoalType.EMERGENCY_FUND):
        return goal.target_amount is not None and year.total_assets >= goal.target_amount
    if goal.type == GoalType.RETIREMENT:
        readiness = calculate_retirement_readiness(
            _retirement_assets_total(profile, year),
            year.net_income * profile.assumptions.income_replacement_ratio,
            profile.assumptions.retirement_withdrawal_rate,
        )
        return readiness.is_ready
    # Purchase, education and other goals are not modelled
    return False

def generate_summary(
    profile: FinancialProfile,
    years: List[TrajectoryYear],
    milestones: List[Milestone],
    retirement_year: Optional[int],
    base_year: int
) -> TrajectorySummary:
    net_worth_at_end = years[-1].net_worth if years else 0

    net_worth_at_retirement = net_worth_at_end
    if retirement_year is not None:
        retirement_data = next((y for y in years if y.year == retirement_year), None)
        net_worth_at_retirement = retirement_data.net_worth if retirement_data else 0

    average_hourly_rate = 0
    years_with_work = [y for y in years if y.total_work_hours > 0]
    if years_with_work:
        total_net = sum(y.net_income for y in years_with_work)
        total_hours = sum(y.total_work_hours for y in years_with_work)
        average_hourly_rate = round_cents(total_net / total_hours)

    return TrajectorySummary(
        total_years=len(years),
        retirement_year=retirement_year,
        retirement_age=(
            profile.assumptions.current_age + (retirement_year - base_year)
            if retirement_year is not None else None
        ),
        total_lifetime_income=sum(y.gross_income for y in years),
        total_lifetime_taxes=sum(y.total_taxes for y in years),
        total_lifetime_interest=sum(y.total_interest_paid for y in years),
        net_worth_at_retirement=net_worth_at_retirement,
        net_worth_at_end=net_worth_at_end,
        goals_achieved=len([m for m in milestones if m.type == MilestoneType.GOAL_ACHIEVED]),
        goals_missed=len([m for m in milestones if m.type == MilestoneType.GOAL_MISSED]),
        total_lifetime_work_hours=sum(y.total_work_hours for y in years),
        average_effective_hourly_rate=average_hourly_rate,
    )


# -----------------------------------------------------------------------------
# Trajectory queries
# -----------------------------------------------------------------------------
def get_trajectory_year(trajectory: Trajectory, year: int) -> Optional[TrajectoryYear]:
    return next((y for y in trajectory.years if y.year == year), None)

def get_milestones_for_year(trajectory: Trajectory, year: int) -> List[Milestone]:
    return [m for m in trajectory.milestones if m.year == year]

def get_milestones_by_type(trajectory: Trajectory, milestone_type: MilestoneType) -> List[Milestone]:
    return [m for m in trajectory.milestones if m.type == milestone_type]

def find_net_worth_milestone_year(trajectory: Trajectory, target_net_worth: int) -> Optional[int]:
    """First year whose net worth reaches target_net_worth."""
    return next((y.year for y in trajectory.years if y.net_worth >= target_net_worth), None)

def find_debt_free_year(trajectory: Trajectory) -> Optional[int]:
    return next((y.year for y in trajectory.years if y.total_debt == 0), None)
