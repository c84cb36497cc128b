from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import Field, SQLModel

# Import FilingStatus from tax_config to avoid circular imports
from .tax_config import FilingStatus


def generate_id() -> str:
    return str(uuid4())


class IncomeType(str, Enum):
    SALARY = "salary"      # Annual amount
    HOURLY = "hourly"      # Amount is the hourly rate
    VARIABLE = "variable"  # Annual estimate (commission, freelance)
    PASSIVE = "passive"    # Rental, dividends, royalties

class DebtType(str, Enum):
    MORTGAGE = "mortgage"
    AUTO = "auto"
    STUDENT = "student"
    CREDIT = "credit"
    PERSONAL = "personal"
    OTHER = "other"

class AssetType(str, Enum):
    RETIREMENT_PRETAX = "retirement_pretax"  # 401k, Traditional IRA
    RETIREMENT_ROTH = "retirement_roth"      # Roth 401k, Roth IRA
    SAVINGS = "savings"
    INVESTMENT = "investment"
    PROPERTY = "property"
    HSA = "hsa"
    OTHER = "other"

class ObligationCategory(str, Enum):
    HOUSING = "housing"
    UTILITIES = "utilities"
    TRANSPORT = "transport"
    FOOD = "food"
    INSURANCE = "insurance"
    SUBSCRIPTION = "subscription"
    HEALTHCARE = "healthcare"
    CHILDCARE = "childcare"
    OTHER = "other"

class GoalType(str, Enum):
    PURCHASE = "purchase"
    RETIREMENT = "retirement"
    EDUCATION = "education"
    DEBT_FREE = "debt_free"
    SAVINGS_TARGET = "savings_target"
    EMERGENCY_FUND = "emergency_fund"
    OTHER = "other"

RETIREMENT_ASSET_TYPES = (AssetType.RETIREMENT_PRETAX, AssetType.RETIREMENT_ROTH)


class MonthYear(BaseModel):
    month: int = PydanticField(ge=1, le=12)
    year: int


# All money fields are integer cents; rates are decimals (0.07 = 7%).
class IncomeSource(BaseModel):
    id: str = PydanticField(default_factory=generate_id)
    name: str = ""
    type: IncomeType = IncomeType.SALARY
    amount: int = PydanticField(default=0, ge=0)
    hours_per_week: float = PydanticField(default=40, ge=0, le=168)
    variability: float = PydanticField(default=0.0, ge=0, le=1)  # informational only
    expected_growth: float = 0.02
    end_date: Optional[MonthYear] = None  # inclusive

class Debt(BaseModel):
    id: str = PydanticField(default_factory=generate_id)
    name: str = ""
    type: DebtType = DebtType.OTHER
    principal: int = PydanticField(default=0, ge=0)
    interest_rate: float = PydanticField(default=0.0, ge=0)
    minimum_payment: int = PydanticField(default=0, ge=0)
    actual_payment: int = PydanticField(default=0, ge=0)
    term_months: int = PydanticField(default=0, ge=0)
    months_remaining: int = PydanticField(default=0, ge=0)

    # Mortgage-only fields
    property_value: Optional[int] = PydanticField(default=None, ge=0)
    pmi_threshold: Optional[float] = None  # LTV above which PMI is charged (usually 0.8)
    pmi_amount: Optional[int] = None       # monthly
    escrow_taxes: Optional[int] = None     # monthly
    escrow_insurance: Optional[int] = None # monthly

class Asset(BaseModel):
    id: str = PydanticField(default_factory=generate_id)
    name: str = ""
    type: AssetType = AssetType.SAVINGS
    balance: int = PydanticField(default=0, ge=0)
    monthly_contribution: int = PydanticField(default=0, ge=0)
    expected_return: Optional[float] = None  # None uses the market return assumption
    employer_match: Optional[float] = None   # fraction of contribution matched
    match_limit: Optional[float] = None      # fraction of salary eligible for match

    @property
    def annual_contribution(self) -> int:
        return self.monthly_contribution * 12

    @property
    def is_retirement_account(self) -> bool:
        return self.type in RETIREMENT_ASSET_TYPES

class Obligation(BaseModel):
    id: str = PydanticField(default_factory=generate_id)
    name: str = ""
    category: ObligationCategory = ObligationCategory.OTHER
    amount: int = PydanticField(default=0, ge=0)  # monthly
    is_fixed: bool = True

class Goal(BaseModel):
    id: str = PydanticField(default_factory=generate_id)
    name: str = ""
    type: GoalType = GoalType.OTHER
    target_amount: Optional[int] = None
    target_date: Optional[MonthYear] = None
    priority: int = 1
    flexible: bool = False

class Assumptions(BaseModel):
    inflation_rate: float = 0.03
    market_return: float = 0.07
    home_appreciation: float = 0.03
    salary_growth: float = 0.02
    retirement_withdrawal_rate: float = 0.04
    income_replacement_ratio: float = PydanticField(default=0.80, ge=0)
    life_expectancy: int = PydanticField(default=85, ge=0)
    current_age: int = PydanticField(default=30, ge=0)
    filing_status: FilingStatus = FilingStatus.SINGLE
    state: str = "CA"
    base_year: Optional[int] = None  # Calendar year corresponding to current_age; None means this year

    @property
    def projection_years(self) -> int:
        return max(0, self.life_expectancy - self.current_age)

class FinancialProfile(BaseModel):
    id: str = PydanticField(default_factory=generate_id)
    name: str = ""
    incomes: List[IncomeSource] = []
    debts: List[Debt] = []
    obligations: List[Obligation] = []
    assets: List[Asset] = []
    goals: List[Goal] = []
    assumptions: Assumptions = PydanticField(default_factory=Assumptions)


class ProfileRecord(SQLModel, table=True):
    """Stored profile; the full FinancialProfile is kept as JSON in payload."""
    id: str = Field(primary_key=True)
    name: str
    payload: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_profile(self) -> FinancialProfile:
        return FinancialProfile.model_validate_json(self.payload)
