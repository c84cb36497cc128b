from typing import List, Dict, Optional
from pydantic import BaseModel
from enum import Enum
import logging

logger = logging.getLogger(__name__)

class FilingStatus(str, Enum):
    SINGLE = "single"
    MARRIED_FILING_JOINTLY = "married_filing_jointly"
    MARRIED_FILING_SEPARATELY = "married_filing_separately"
    HEAD_OF_HOUSEHOLD = "head_of_household"

class TaxBracket(BaseModel):
    up_to: int | None  # cents; None means “no upper limit”
    rate: float


class TaxTable(BaseModel):
    """
    Represents a set of tax brackets and a standard deduction
    for a given tax regime (federal or state) + filing status + year.
    All thresholds are in cents.
    """
    brackets: List[TaxBracket]
    standard_deduction: int

# -----------------------------------------------------------------------------
# 1. Federal Ordinary Income Tax Config
# -----------------------------------------------------------------------------
# Source (approximate for 2024): https://www.irs.gov/newsroom/irs-provides-tax-inflation-adjustments-for-tax-year-2024
FEDERAL_ORDINARY_TABLES: Dict[int, Dict[FilingStatus, TaxTable]] = {
    2024: {
        FilingStatus.MARRIED_FILING_JOINTLY: TaxTable(
            standard_deduction=2920000,
            brackets=[
                TaxBracket(up_to=2320000, rate=0.10),
                TaxBracket(up_to=9430000, rate=0.12),
                TaxBracket(up_to=20105000, rate=0.22),
                TaxBracket(up_to=38390000, rate=0.24),
                TaxBracket(up_to=48745000, rate=0.32),
                TaxBracket(up_to=73120000, rate=0.35),
                TaxBracket(up_to=None, rate=0.37),
            ]
        ),
        FilingStatus.SINGLE: TaxTable(
             standard_deduction=1460000,
             brackets=[
                TaxBracket(up_to=1160000, rate=0.10),
                TaxBracket(up_to=4715000, rate=0.12),
                TaxBracket(up_to=10052500, rate=0.22),
                TaxBracket(up_to=19195000, rate=0.24),
                TaxBracket(up_to=24372500, rate=0.32),
                TaxBracket(up_to=60935000, rate=0.35),
                TaxBracket(up_to=None, rate=0.37),
             ]
        ),
        FilingStatus.MARRIED_FILING_SEPARATELY: TaxTable(
            standard_deduction=1460000,
            brackets=[
                TaxBracket(up_to=1160000, rate=0.10),
                TaxBracket(up_to=4715000, rate=0.12),
                TaxBracket(up_to=10052500, rate=0.22),
                TaxBracket(up_to=19195000, rate=0.24),
                TaxBracket(up_to=24372500, rate=0.32),
                TaxBracket(up_to=36560000, rate=0.35),
                TaxBracket(up_to=None, rate=0.37),
            ]
        ),
        FilingStatus.HEAD_OF_HOUSEHOLD: TaxTable(
            standard_deduction=2190000,
            brackets=[
                TaxBracket(up_to=1655000, rate=0.10),
                TaxBracket(up_to=6310000, rate=0.12),
                TaxBracket(up_to=10050000, rate=0.22),
                TaxBracket(up_to=19195000, rate=0.24),
                TaxBracket(up_to=24370000, rate=0.32),
                TaxBracket(up_to=60935000, rate=0.35),
                TaxBracket(up_to=None, rate=0.37),
            ]
        )
    }
}

# -----------------------------------------------------------------------------
# 2. Payroll (FICA) Config
# -----------------------------------------------------------------------------
SOCIAL_SECURITY_RATE = 0.062
SOCIAL_SECURITY_WAGE_BASE = 16860000  # $168,600 for 2024
MEDICARE_RATE = 0.0145
ADDITIONAL_MEDICARE_RATE = 0.009

# Additional Medicare tax kicks in above these wages (not indexed)
ADDITIONAL_MEDICARE_THRESHOLDS: Dict[FilingStatus, int] = {
    FilingStatus.SINGLE: 20000000,
    FilingStatus.MARRIED_FILING_JOINTLY: 25000000,
    FilingStatus.MARRIED_FILING_SEPARATELY: 12500000,
    FilingStatus.HEAD_OF_HOUSEHOLD: 20000000,
}

# -----------------------------------------------------------------------------
# 3. State Income Tax Config
# -----------------------------------------------------------------------------
# Simplified 2024 single-filer schedules, applied to every filing status.
class StateTaxType(str, Enum):
    NONE = "none"
    FLAT = "flat"
    PROGRESSIVE = "progressive"

class StateTaxConfig(BaseModel):
    name: str
    type: StateTaxType
    rate: float = 0.0  # flat rate, or top marginal rate for progressive states
    standard_deduction: int = 0
    brackets: Optional[List[TaxBracket]] = None

    @property
    def has_income_tax(self) -> bool:
        return self.type != StateTaxType.NONE

    def as_table(self) -> TaxTable:
        return TaxTable(brackets=self.brackets or [], standard_deduction=self.standard_deduction)


def _no_tax(name: str) -> StateTaxConfig:
    return StateTaxConfig(name=name, type=StateTaxType.NONE)

def _flat(name: str, rate: float, standard_deduction: int = 0) -> StateTaxConfig:
    return StateTaxConfig(name=name, type=StateTaxType.FLAT, rate=rate, standard_deduction=standard_deduction)


STATE_TAX_DATA: Dict[str, StateTaxConfig] = {
    # No income tax
    "AK": _no_tax("Alaska"),
    "FL": _no_tax("Florida"),
    "NV": _no_tax("Nevada"),
    "SD": _no_tax("South Dakota"),
    "TX": _no_tax("Texas"),
    "WA": _no_tax("Washington"),
    "WY": _no_tax("Wyoming"),
    "TN": _no_tax("Tennessee"),
    "NH": _no_tax("New Hampshire"),

    # Flat rate
    "CO": _flat("Colorado", 0.044),
    "IL": _flat("Illinois", 0.0495),
    "IN": _flat("Indiana", 0.0305),
    "KY": _flat("Kentucky", 0.04, 296000),
    "MA": _flat("Massachusetts", 0.05),
    "MI": _flat("Michigan", 0.0425),
    "NC": _flat("North Carolina", 0.0525, 1275000),
    "PA": _flat("Pennsylvania", 0.0307),
    "UT": _flat("Utah", 0.0465),

    # Progressive
    "AL": StateTaxConfig(name="Alabama", type=StateTaxType.PROGRESSIVE, rate=0.05, standard_deduction=300000, brackets=[
        TaxBracket(up_to=50000, rate=0.02),
        TaxBracket(up_to=300000, rate=0.04),
        TaxBracket(up_to=None, rate=0.05),
    ]),
    "AZ": StateTaxConfig(name="Arizona", type=StateTaxType.PROGRESSIVE, rate=0.025, standard_deduction=1413600, brackets=[
        TaxBracket(up_to=None, rate=0.025),
    ]),
    "AR": StateTaxConfig(name="Arkansas", type=StateTaxType.PROGRESSIVE, rate=0.044, standard_deduction=246000, brackets=[
        TaxBracket(up_to=490200, rate=0.02),
        TaxBracket(up_to=980300, rate=0.04),
        TaxBracket(up_to=None, rate=0.044),
    ]),
    "CA": StateTaxConfig(name="California", type=StateTaxType.PROGRESSIVE, rate=0.133, standard_deduction=545600, brackets=[
        TaxBracket(up_to=1010200, rate=0.01),
        TaxBracket(up_to=2396800, rate=0.02),
        TaxBracket(up_to=3783300, rate=0.04),
        TaxBracket(up_to=5247900, rate=0.06),
        TaxBracket(up_to=6636200, rate=0.08),
        TaxBracket(up_to=33878200, rate=0.093),
        TaxBracket(up_to=40653900, rate=0.103),
        TaxBracket(up_to=67756400, rate=0.113),
        TaxBracket(up_to=100000000, rate=0.123),  # 1% mental health surcharge above $1M
        TaxBracket(up_to=None, rate=0.133),
    ]),
    "CT": StateTaxConfig(name="Connecticut", type=StateTaxType.PROGRESSIVE, rate=0.0699, standard_deduction=0, brackets=[
        TaxBracket(up_to=1000000, rate=0.03),
        TaxBracket(up_to=5000000, rate=0.05),
        TaxBracket(up_to=10000000, rate=0.055),
        TaxBracket(up_to=20000000, rate=0.06),
        TaxBracket(up_to=25000000, rate=0.065),
        TaxBracket(up_to=50000000, rate=0.069),
        TaxBracket(up_to=None, rate=0.0699),
    ]),
    "DE": StateTaxConfig(name="Delaware", type=StateTaxType.PROGRESSIVE, rate=0.066, standard_deduction=330000, brackets=[
        TaxBracket(up_to=200000, rate=0.022),
        TaxBracket(up_to=500000, rate=0.039),
        TaxBracket(up_to=1000000, rate=0.048),
        TaxBracket(up_to=2500000, rate=0.052),
        TaxBracket(up_to=6000000, rate=0.0555),
        TaxBracket(up_to=None, rate=0.066),
    ]),
    "DC": StateTaxConfig(name="District of Columbia", type=StateTaxType.PROGRESSIVE, rate=0.1075, standard_deduction=0, brackets=[
        TaxBracket(up_to=1000000, rate=0.04),
        TaxBracket(up_to=4000000, rate=0.06),
        TaxBracket(up_to=6000000, rate=0.065),
        TaxBracket(up_to=35000000, rate=0.085),
        TaxBracket(up_to=100000000, rate=0.0925),
        TaxBracket(up_to=None, rate=0.1075),
    ]),
    "GA": StateTaxConfig(name="Georgia", type=StateTaxType.PROGRESSIVE, rate=0.0549, standard_deduction=1240000, brackets=[
        TaxBracket(up_to=75000, rate=0.01),
        TaxBracket(up_to=225000, rate=0.02),
        TaxBracket(up_to=375000, rate=0.03),
        TaxBracket(up_to=525000, rate=0.04),
        TaxBracket(up_to=700000, rate=0.05),
        TaxBracket(up_to=None, rate=0.0549),
    ]),
    "HI": StateTaxConfig(name="Hawaii", type=StateTaxType.PROGRESSIVE, rate=0.11, standard_deduction=248000, brackets=[
        TaxBracket(up_to=240000, rate=0.014),
        TaxBracket(up_to=480000, rate=0.032),
        TaxBracket(up_to=960000, rate=0.055),
        TaxBracket(up_to=1680000, rate=0.064),
        TaxBracket(up_to=2400000, rate=0.068),
        TaxBracket(up_to=3600000, rate=0.072),
        TaxBracket(up_to=4800000, rate=0.076),
        TaxBracket(up_to=15000000, rate=0.079),
        TaxBracket(up_to=17500000, rate=0.0825),
        TaxBracket(up_to=20000000, rate=0.09),
        TaxBracket(up_to=None, rate=0.11),
    ]),
    "ID": StateTaxConfig(name="Idaho", type=StateTaxType.PROGRESSIVE, rate=0.058, standard_deduction=1460000, brackets=[
        TaxBracket(up_to=None, rate=0.058),
    ]),
    "IA": StateTaxConfig(name="Iowa", type=StateTaxType.PROGRESSIVE, rate=0.057, standard_deduction=0, brackets=[
        TaxBracket(up_to=600000, rate=0.044),
        TaxBracket(up_to=None, rate=0.057),
    ]),
    "KS": StateTaxConfig(name="Kansas", type=StateTaxType.PROGRESSIVE, rate=0.057, standard_deduction=300000, brackets=[
        TaxBracket(up_to=1500000, rate=0.031),
        TaxBracket(up_to=3000000, rate=0.0525),
        TaxBracket(up_to=None, rate=0.057),
    ]),
    "LA": StateTaxConfig(name="Louisiana", type=StateTaxType.PROGRESSIVE, rate=0.0425, standard_deduction=0, brackets=[
        TaxBracket(up_to=1250000, rate=0.0185),
        TaxBracket(up_to=5000000, rate=0.035),
        TaxBracket(up_to=None, rate=0.0425),
    ]),
    "ME": StateTaxConfig(name="Maine", type=StateTaxType.PROGRESSIVE, rate=0.0715, standard_deduction=1410000, brackets=[
        TaxBracket(up_to=2495000, rate=0.058),
        TaxBracket(up_to=5890000, rate=0.0675),
        TaxBracket(up_to=None, rate=0.0715),
    ]),
    "MD": StateTaxConfig(name="Maryland", type=StateTaxType.PROGRESSIVE, rate=0.0575, standard_deduction=265000, brackets=[
        TaxBracket(up_to=100000, rate=0.02),
        TaxBracket(up_to=300000, rate=0.03),
        TaxBracket(up_to=400000, rate=0.04),
        TaxBracket(up_to=15000000, rate=0.0475),
        TaxBracket(up_to=17500000, rate=0.05),
        TaxBracket(up_to=25000000, rate=0.0525),
        TaxBracket(up_to=None, rate=0.0575),
    ]),
    "MN": StateTaxConfig(name="Minnesota", type=StateTaxType.PROGRESSIVE, rate=0.0985, standard_deduction=1460000, brackets=[
        TaxBracket(up_to=3123000, rate=0.0535),
        TaxBracket(up_to=10260200, rate=0.068),
        TaxBracket(up_to=18371400, rate=0.0785),
        TaxBracket(up_to=None, rate=0.0985),
    ]),
    "MS": StateTaxConfig(name="Mississippi", type=StateTaxType.PROGRESSIVE, rate=0.05, standard_deduction=0, brackets=[
        TaxBracket(up_to=1000000, rate=0.047),
        TaxBracket(up_to=None, rate=0.05),
    ]),
    "MO": StateTaxConfig(name="Missouri", type=StateTaxType.PROGRESSIVE, rate=0.048, standard_deduction=0, brackets=[
        TaxBracket(up_to=100000, rate=0.02),
        TaxBracket(up_to=200000, rate=0.025),
        TaxBracket(up_to=300000, rate=0.03),
        TaxBracket(up_to=400000, rate=0.035),
        TaxBracket(up_to=500000, rate=0.04),
        TaxBracket(up_to=600000, rate=0.045),
        TaxBracket(up_to=None, rate=0.048),
    ]),
    "MT": StateTaxConfig(name="Montana", type=StateTaxType.PROGRESSIVE, rate=0.059, standard_deduction=565000, brackets=[
        TaxBracket(up_to=2000000, rate=0.047),
        TaxBracket(up_to=None, rate=0.059),
    ]),
    "NE": StateTaxConfig(name="Nebraska", type=StateTaxType.PROGRESSIVE, rate=0.0584, standard_deduction=0, brackets=[
        TaxBracket(up_to=379200, rate=0.0246),
        TaxBracket(up_to=2274800, rate=0.0351),
        TaxBracket(up_to=3637600, rate=0.0501),
        TaxBracket(up_to=None, rate=0.0584),
    ]),
    "NJ": StateTaxConfig(name="New Jersey", type=StateTaxType.PROGRESSIVE, rate=0.1075, standard_deduction=0, brackets=[
        TaxBracket(up_to=2000000, rate=0.014),
        TaxBracket(up_to=3500000, rate=0.0175),
        TaxBracket(up_to=4000000, rate=0.035),
        TaxBracket(up_to=7500000, rate=0.05525),
        TaxBracket(up_to=50000000, rate=0.0637),
        TaxBracket(up_to=100000000, rate=0.0897),
        TaxBracket(up_to=None, rate=0.1075),
    ]),
    "NM": StateTaxConfig(name="New Mexico", type=StateTaxType.PROGRESSIVE, rate=0.059, standard_deduction=0, brackets=[
        TaxBracket(up_to=550000, rate=0.017),
        TaxBracket(up_to=1100000, rate=0.032),
        TaxBracket(up_to=1600000, rate=0.047),
        TaxBracket(up_to=21000000, rate=0.049),
        TaxBracket(up_to=None, rate=0.059),
    ]),
    "NY": StateTaxConfig(name="New York", type=StateTaxType.PROGRESSIVE, rate=0.109, standard_deduction=800000, brackets=[
        TaxBracket(up_to=852500, rate=0.04),
        TaxBracket(up_to=1172500, rate=0.045),
        TaxBracket(up_to=1372500, rate=0.0525),
        TaxBracket(up_to=2157150, rate=0.055),
        TaxBracket(up_to=500000000, rate=0.06),
        TaxBracket(up_to=2500000000, rate=0.0685),
        TaxBracket(up_to=None, rate=0.109),
    ]),
    "ND": StateTaxConfig(name="North Dakota", type=StateTaxType.PROGRESSIVE, rate=0.029, standard_deduction=0, brackets=[
        TaxBracket(up_to=None, rate=0.0195),
    ]),
    "OH": StateTaxConfig(name="Ohio", type=StateTaxType.PROGRESSIVE, rate=0.035, standard_deduction=0, brackets=[
        TaxBracket(up_to=2600000, rate=0.0),
        TaxBracket(up_to=4600000, rate=0.0275),
        TaxBracket(up_to=9200000, rate=0.03),
        TaxBracket(up_to=None, rate=0.035),
    ]),
    "OK": StateTaxConfig(name="Oklahoma", type=StateTaxType.PROGRESSIVE, rate=0.0475, standard_deduction=0, brackets=[
        TaxBracket(up_to=100000, rate=0.0025),
        TaxBracket(up_to=250000, rate=0.0075),
        TaxBracket(up_to=375000, rate=0.0175),
        TaxBracket(up_to=475000, rate=0.0275),
        TaxBracket(up_to=750000, rate=0.0375),
        TaxBracket(up_to=None, rate=0.0475),
    ]),
    "OR": StateTaxConfig(name="Oregon", type=StateTaxType.PROGRESSIVE, rate=0.099, standard_deduction=260000, brackets=[
        TaxBracket(up_to=410000, rate=0.0475),
        TaxBracket(up_to=1030000, rate=0.0675),
        TaxBracket(up_to=12500000, rate=0.0875),
        TaxBracket(up_to=None, rate=0.099),
    ]),
    "RI": StateTaxConfig(name="Rhode Island", type=StateTaxType.PROGRESSIVE, rate=0.0599, standard_deduction=1025000, brackets=[
        TaxBracket(up_to=7315000, rate=0.0375),
        TaxBracket(up_to=16645000, rate=0.0475),
        TaxBracket(up_to=None, rate=0.0599),
    ]),
    "SC": StateTaxConfig(name="South Carolina", type=StateTaxType.PROGRESSIVE, rate=0.064, standard_deduction=0, brackets=[
        TaxBracket(up_to=322000, rate=0.0),
        TaxBracket(up_to=1631000, rate=0.03),
        TaxBracket(up_to=None, rate=0.064),
    ]),
    "VT": StateTaxConfig(name="Vermont", type=StateTaxType.PROGRESSIVE, rate=0.0875, standard_deduction=699000, brackets=[
        TaxBracket(up_to=4525000, rate=0.0335),
        TaxBracket(up_to=10975000, rate=0.066),
        TaxBracket(up_to=22900000, rate=0.076),
        TaxBracket(up_to=None, rate=0.0875),
    ]),
    "VA": StateTaxConfig(name="Virginia", type=StateTaxType.PROGRESSIVE, rate=0.0575, standard_deduction=800000, brackets=[
        TaxBracket(up_to=300000, rate=0.02),
        TaxBracket(up_to=500000, rate=0.03),
        TaxBracket(up_to=1700000, rate=0.05),
        TaxBracket(up_to=None, rate=0.0575),
    ]),
    "WV": StateTaxConfig(name="West Virginia", type=StateTaxType.PROGRESSIVE, rate=0.055, standard_deduction=0, brackets=[
        TaxBracket(up_to=1000000, rate=0.0236),
        TaxBracket(up_to=2500000, rate=0.0315),
        TaxBracket(up_to=4000000, rate=0.0354),
        TaxBracket(up_to=6000000, rate=0.0472),
        TaxBracket(up_to=None, rate=0.055),
    ]),
    "WI": StateTaxConfig(name="Wisconsin", type=StateTaxType.PROGRESSIVE, rate=0.0765, standard_deduction=1324000, brackets=[
        TaxBracket(up_to=1398000, rate=0.035),
        TaxBracket(up_to=2796000, rate=0.044),
        TaxBracket(up_to=30906000, rate=0.053),
        TaxBracket(up_to=None, rate=0.0765),
    ]),
}

def _get_table_for_year_and_status(
    tables: Dict[int, Dict[FilingStatus, TaxTable]],
    year: Optional[int],
    filing_status: FilingStatus
) -> TaxTable:
    """
    Helper to look up a tax table.
    Strategy:
    1. Look for exact year.
    2. If not found (or no year given), use the MAX available year.
    3. If filing status not found for that year, raise ValueError.
    """
    if not tables:
        raise ValueError("No tax tables configured.")

    if year in tables:
        target_year = year
    else:
        target_year = max(tables.keys())

    year_tables = tables[target_year]

    if filing_status not in year_tables:
        raise ValueError(f"Filing status {filing_status} not found in tax tables for year {target_year}")

    return year_tables[filing_status]

def get_federal_ordinary_tax_table(filing_status: FilingStatus, year: Optional[int] = None) -> TaxTable:
    """
    Get Federal Ordinary Income tax table (brackets + standard deduction).
    """
    return _get_table_for_year_and_status(FEDERAL_ORDINARY_TABLES, year, filing_status)

def get_standard_deduction(filing_status: FilingStatus, year: Optional[int] = None) -> int:
    return get_federal_ordinary_tax_table(filing_status, year).standard_deduction

def get_additional_medicare_threshold(filing_status: FilingStatus) -> int:
    if filing_status not in ADDITIONAL_MEDICARE_THRESHOLDS:
        raise ValueError(f"Filing status {filing_status} has no additional Medicare threshold")
    return ADDITIONAL_MEDICARE_THRESHOLDS[filing_status]

def get_state_tax_config(state: str) -> Optional[StateTaxConfig]:
    """
    Get a state's tax configuration. Unknown codes return None.
    """
    config = STATE_TAX_DATA.get(state.upper())
    if config is None:
        logger.debug("No tax configuration for state %s; state tax treated as zero", state)
    return config

def is_known_state(state: str) -> bool:
    return state.upper() in STATE_TAX_DATA

def state_has_income_tax(state: str) -> bool:
    config = STATE_TAX_DATA.get(state.upper())
    return config is not None and config.has_income_tax

def get_no_income_tax_states() -> List[str]:
    return [code for code, config in STATE_TAX_DATA.items() if not config.has_income_tax]

def get_flat_tax_states() -> List[str]:
    return [code for code, config in STATE_TAX_DATA.items() if config.type == StateTaxType.FLAT]

def get_all_state_codes() -> List[str]:
    return list(STATE_TAX_DATA.keys())
