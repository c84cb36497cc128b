from typing import Optional, List, Any
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, computed_field

from .models import FinancialProfile


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# -----------------------------------------------------------------------------
# Trajectory
# -----------------------------------------------------------------------------
class DebtState(FrozenModel):
    debt_id: str
    remaining_principal: int
    interest_paid_this_year: int
    principal_paid_this_year: int
    is_paid_off: bool
    payoff_month: Optional[int] = None  # 1-12 when paid off during this year

class AssetState(FrozenModel):
    asset_id: str
    balance: int
    contributions_this_year: int
    growth_this_year: int
    employer_match_this_year: int

class TrajectoryYear(FrozenModel):
    year: int
    age: int

    # Income
    gross_income: int = 0
    tax_federal: int = 0
    tax_state: int = 0
    tax_fica: int = 0
    net_income: int = 0
    effective_tax_rate: float = 0.0

    # Work
    total_work_hours: int = 0
    effective_hourly_rate: int = 0

    # Debts
    debts: List[DebtState] = []
    total_debt: int = 0
    total_debt_payment: int = 0
    total_interest_paid: int = 0

    # Assets
    assets: List[AssetState] = []
    total_assets: int = 0
    net_worth: int = 0  # always total_assets - total_debt

    # Cash flow
    total_obligations: int = 0
    discretionary_income: int = 0
    savings_rate: float = 0.0

    # Housing (mortgage holders only)
    home_equity: int = 0
    ltv_ratio: float = 0.0
    paying_pmi: bool = False

    @computed_field
    @property
    def total_taxes(self) -> int:
        return self.tax_federal + self.tax_state + self.tax_fica

class MilestoneType(str, Enum):
    DEBT_PAYOFF = "debt_payoff"
    GOAL_ACHIEVED = "goal_achieved"
    GOAL_MISSED = "goal_missed"
    RETIREMENT_READY = "retirement_ready"
    PMI_REMOVED = "pmi_removed"
    NET_WORTH_MILESTONE = "net_worth_milestone"

class Milestone(FrozenModel):
    year: int
    month: int
    type: MilestoneType
    description: str
    related_id: Optional[str] = None

class TrajectorySummary(FrozenModel):
    total_years: int = 0
    retirement_year: Optional[int] = None
    retirement_age: Optional[int] = None
    total_lifetime_income: int = 0
    total_lifetime_taxes: int = 0
    total_lifetime_interest: int = 0
    net_worth_at_retirement: int = 0
    net_worth_at_end: int = 0
    goals_achieved: int = 0
    goals_missed: int = 0
    total_lifetime_work_hours: int = 0
    average_effective_hourly_rate: int = 0

class Trajectory(FrozenModel):
    profile_id: str
    generated_at: datetime
    years: List[TrajectoryYear] = []
    milestones: List[Milestone] = []
    summary: TrajectorySummary = TrajectorySummary()


# -----------------------------------------------------------------------------
# Comparison
# -----------------------------------------------------------------------------
class Change(FrozenModel):
    field: str
    original_value: Any = None
    new_value: Any = None
    description: str = ""

class YearDelta(FrozenModel):
    year: int
    net_worth_delta: int = 0
    income_delta: int = 0
    debt_delta: int = 0
    assets_delta: int = 0
    taxes_delta: int = 0
    savings_rate_delta: float = 0.0

class ComparisonSummary(FrozenModel):
    retirement_date_delta: int = 0  # months; negative means the alternate retires earlier
    lifetime_interest_delta: int = 0
    net_worth_at_retirement_delta: int = 0
    total_work_hours_delta: int = 0
    net_worth_at_end_delta: int = 0
    key_insight: str = ""

class Comparison(FrozenModel):
    id: str
    name: str
    baseline: Trajectory
    alternate: Trajectory
    changes: List[Change] = []
    deltas: List[YearDelta] = []
    summary: ComparisonSummary
    created_at: datetime

class CumulativeImpact(FrozenModel):
    net_worth_impact: int = 0
    income_impact: int = 0
    taxes_impact: int = 0
    average_yearly_benefit: int = 0

class YearComparison(FrozenModel):
    baseline_year: TrajectoryYear
    alternate_year: TrajectoryYear
    delta: YearDelta


# -----------------------------------------------------------------------------
# API bodies
# -----------------------------------------------------------------------------
class CompareRequestBody(BaseModel):
    baseline: Trajectory
    alternate: Trajectory
    changes: List[Change] = []
    name: str = "Comparison"

class CompareProfilesRequest(BaseModel):
    baseline: FinancialProfile
    alternate: FinancialProfile
    name: str = "Comparison"
    quick_years: Optional[int] = None

class ProfileRead(BaseModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    profile: FinancialProfile
