import logging
from typing import Optional, Tuple
from pydantic import BaseModel
from .money import round_cents
from .tax_config import (
    FilingStatus, TaxTable, StateTaxType,
    SOCIAL_SECURITY_RATE, SOCIAL_SECURITY_WAGE_BASE, MEDICARE_RATE, ADDITIONAL_MEDICARE_RATE,
    get_federal_ordinary_tax_table, get_additional_medicare_threshold, get_state_tax_config,
)

logger = logging.getLogger(__name__)

class FederalTaxResult(BaseModel):
    tax: int = 0
    taxable_income: int = 0
    effective_rate: float = 0.0
    marginal_rate: float = 0.0

class StateTaxResult(BaseModel):
    tax: int = 0
    effective_rate: float = 0.0

class FicaResult(BaseModel):
    social_security: int = 0
    medicare: int = 0
    total: int = 0

class TaxBreakdown(BaseModel):
    gross_income: int = 0
    federal_tax: int = 0
    state_tax: int = 0
    social_security_tax: int = 0
    medicare_tax: int = 0
    total_fica: int = 0
    total_tax: int = 0
    net_income: int = 0
    effective_rate: float = 0.0    # total_tax / gross_income
    marginal_rate: float = 0.0     # federal marginal rate

class OptimalContribution(BaseModel):
    optimal_contribution: int
    tax_savings: int

def apply_brackets(taxable_income: int, table: TaxTable) -> Tuple[int, float]:
    """
    Calculate tax based on progressive brackets.
    Returns (total tax in cents, marginal rate of the last bracket touched).
    Each bracket's share is rounded to the cent before summing.
    """
    marginal_rate = table.brackets[0].rate if table.brackets else 0.0
    if taxable_income <= 0:
        return 0, marginal_rate

    tax = 0
    previous_up_to = 0

    for bracket in table.brackets:
        if taxable_income <= previous_up_to:
            break

        # Top bracket has no upper limit
        if bracket.up_to is None:
            income_in_bracket = taxable_income - previous_up_to
        else:
            income_in_bracket = min(bracket.up_to, taxable_income) - previous_up_to

        tax += round_cents(income_in_bracket * bracket.rate)
        marginal_rate = bracket.rate

        if bracket.up_to is None:
            break
        previous_up_to = bracket.up_to

    return tax, marginal_rate

def calculate_federal_tax(
    gross_income: int,
    filing_status: FilingStatus,
    pre_tax_contributions: int = 0,
    year: Optional[int] = None
) -> FederalTaxResult:
    table = get_federal_ordinary_tax_table(filing_status, year)
    adjusted_gross = max(0, gross_income - pre_tax_contributions)
    taxable_income = max(0, adjusted_gross - table.standard_deduction)

    if taxable_income == 0:
        return FederalTaxResult(tax=0, taxable_income=0, effective_rate=0.0, marginal_rate=table.brackets[0].rate)

    tax, marginal_rate = apply_brackets(taxable_income, table)
    effective_rate = tax / gross_income if gross_income > 0 else 0.0

    return FederalTaxResult(
        tax=tax,
        taxable_income=taxable_income,
        effective_rate=effective_rate,
        marginal_rate=marginal_rate,
    )

def calculate_state_tax(
    gross_income: int,
    state: str,
    pre_tax_contributions: int = 0
) -> StateTaxResult:
    """
    Progressive brackets for states that have them, flat rate otherwise.
    States without an income tax (or unknown codes) owe nothing.
    """
    config = get_state_tax_config(state)
    if config is None or not config.has_income_tax:
        return StateTaxResult()

    adjusted_gross = max(0, gross_income - pre_tax_contributions)
    taxable_income = max(0, adjusted_gross - config.standard_deduction)

    if taxable_income == 0:
        return StateTaxResult()

    if config.type == StateTaxType.PROGRESSIVE and config.brackets is not None:
        tax, _ = apply_brackets(taxable_income, config.as_table())
    else:
        tax = round_cents(taxable_income * config.rate)

    effective_rate = tax / gross_income if gross_income > 0 else 0.0
    return StateTaxResult(tax=tax, effective_rate=effective_rate)

def calculate_fica(gross_income: int, filing_status: FilingStatus) -> FicaResult:
    """
    Social Security (capped at the wage base) plus Medicare,
    with the additional Medicare tax above the filing-status threshold.
    """
    social_security_wages = min(gross_income, SOCIAL_SECURITY_WAGE_BASE)
    social_security = round_cents(social_security_wages * SOCIAL_SECURITY_RATE)

    medicare = round_cents(gross_income * MEDICARE_RATE)
    threshold = get_additional_medicare_threshold(filing_status)
    if gross_income > threshold:
        medicare += round_cents((gross_income - threshold) * ADDITIONAL_MEDICARE_RATE)

    return FicaResult(
        social_security=social_security,
        medicare=medicare,
        total=social_security + medicare,
    )

def calculate_total_tax(
    gross_income: int,
    filing_status: FilingStatus,
    state: str,
    pre_tax_contributions: int = 0,
    year: Optional[int] = None
) -> TaxBreakdown:
    federal = calculate_federal_tax(gross_income, filing_status, pre_tax_contributions, year)
    state_result = calculate_state_tax(gross_income, state, pre_tax_contributions)
    fica = calculate_fica(gross_income, filing_status)

    total_tax = federal.tax + state_result.tax + fica.total
    net_income = gross_income - total_tax
    effective_rate = total_tax / gross_income if gross_income > 0 else 0.0

    logger.debug(
        "Tax on %s (%s, %s): federal=%s state=%s fica=%s",
        gross_income, filing_status.value, state, federal.tax, state_result.tax, fica.total,
    )

    return TaxBreakdown(
        gross_income=gross_income,
        federal_tax=federal.tax,
        state_tax=state_result.tax,
        social_security_tax=fica.social_security,
        medicare_tax=fica.medicare,
        total_fica=fica.total,
        total_tax=total_tax,
        net_income=net_income,
        effective_rate=effective_rate,
        marginal_rate=federal.marginal_rate,
    )

def calculate_retirement_tax_savings(
    gross_income: int,
    contribution: int,
    filing_status: FilingStatus,
    state: str
) -> int:
    """Total tax saved by making a pre-tax retirement contribution."""
    tax_without = calculate_total_tax(gross_income, filing_status, state, 0)
    tax_with = calculate_total_tax(gross_income, filing_status, state, contribution)
    return tax_without.total_tax - tax_with.total_tax

def calculate_optimal_contribution(
    gross_income: int,
    filing_status: FilingStatus,
    current_contribution: int
) -> Optional[OptimalContribution]:
    """
    Extra pre-tax contribution needed to drop taxable income to the top of the
    previous federal bracket, and the federal tax that would save.
    Returns None when already in the lowest bracket.
    """
    table = get_federal_ordinary_tax_table(filing_status)
    taxable_income = max(0, gross_income - current_contribution - table.standard_deduction)

    current_index = -1
    bracket_min = 0
    for index, bracket in enumerate(table.brackets):
        if taxable_income >= bracket_min and (bracket.up_to is None or taxable_income < bracket.up_to):
            current_index = index
            break
        bracket_min = bracket.up_to

    if current_index <= 0:
        return None

    additional_contribution = taxable_income - bracket_min
    rate_difference = table.brackets[current_index].rate - table.brackets[current_index - 1].rate

    return OptimalContribution(
        optimal_contribution=current_contribution + additional_contribution,
        tax_savings=round_cents(additional_contribution * rate_difference),
    )

def estimate_future_tax(
    future_gross_income: int,
    years_in_future: int,
    inflation_rate: float,
    filing_status: FilingStatus,
    state: str,
    pre_tax_contributions: int = 0
) -> TaxBreakdown:
    """
    Approximate tax for a future year.

    Deflates income to present-day dollars, applies today's brackets, then
    re-inflates each component. This stands in for bracket indexation and
    will not match what the IRS actually publishes.
    """
    deflator = (1 + inflation_rate) ** years_in_future
    present_income = round_cents(future_gross_income / deflator)
    present_contributions = round_cents(pre_tax_contributions / deflator)

    present = calculate_total_tax(present_income, filing_status, state, present_contributions)
    total_tax = round_cents(present.total_tax * deflator)

    return present.model_copy(update={
        "gross_income": future_gross_income,
        "federal_tax": round_cents(present.federal_tax * deflator),
        "state_tax": round_cents(present.state_tax * deflator),
        "social_security_tax": round_cents(present.social_security_tax * deflator),
        "medicare_tax": round_cents(present.medicare_tax * deflator),
        "total_fica": round_cents(present.total_fica * deflator),
        "total_tax": total_tax,
        "net_income": future_gross_income - total_tax,
    })
