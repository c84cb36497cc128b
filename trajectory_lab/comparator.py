"""
Trajectory comparison.

Everything here is a pure function over two finished trajectories;
neither input is modified. Deltas are always alternate minus baseline.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .models import FinancialProfile
from .money import round_cents
from .schemas import (
    Trajectory, TrajectoryYear, Change, YearDelta, ComparisonSummary,
    Comparison, CumulativeImpact, YearComparison,
)
from .projector import get_trajectory_year


def calculate_year_delta(baseline_year: TrajectoryYear, alternate_year: TrajectoryYear) -> YearDelta:
    return YearDelta(
        year=baseline_year.year,
        net_worth_delta=alternate_year.net_worth - baseline_year.net_worth,
        income_delta=alternate_year.gross_income - baseline_year.gross_income,
        debt_delta=alternate_year.total_debt - baseline_year.total_debt,
        assets_delta=alternate_year.total_assets - baseline_year.total_assets,
        taxes_delta=alternate_year.total_taxes - baseline_year.total_taxes,
        savings_rate_delta=alternate_year.savings_rate - baseline_year.savings_rate,
    )

def calculate_year_deltas(baseline: Trajectory, alternate: Trajectory) -> List[YearDelta]:
    """Aligned by calendar year; baseline years missing from the alternate are skipped."""
    alternate_by_year = {y.year: y for y in alternate.years}
    return [
        calculate_year_delta(baseline_year, alternate_by_year[baseline_year.year])
        for baseline_year in baseline.years
        if baseline_year.year in alternate_by_year
    ]

def _effective_retirement_year(trajectory: Trajectory) -> Optional[int]:
    """A trajectory that never becomes ready is treated as retiring the year after its horizon ends."""
    if trajectory.summary.retirement_year is not None:
        return trajectory.summary.retirement_year
    if trajectory.years:
        return trajectory.years[-1].year + 1
    return None

def calculate_comparison_summary(baseline: Trajectory, alternate: Trajectory) -> ComparisonSummary:
    base_retirement = _effective_retirement_year(baseline)
    alt_retirement = _effective_retirement_year(alternate)
    retirement_delta = 0
    if base_retirement is not None and alt_retirement is not None:
        retirement_delta = (alt_retirement - base_retirement) * 12

    base_summary = baseline.summary
    alt_summary = alternate.summary
    summary = ComparisonSummary(
        retirement_date_delta=retirement_delta,
        lifetime_interest_delta=alt_summary.total_lifetime_interest - base_summary.total_lifetime_interest,
        net_worth_at_retirement_delta=alt_summary.net_worth_at_retirement - base_summary.net_worth_at_retirement,
        total_work_hours_delta=alt_summary.total_lifetime_work_hours - base_summary.total_lifetime_work_hours,
        net_worth_at_end_delta=alt_summary.net_worth_at_end - base_summary.net_worth_at_end,
    )
    return summary.model_copy(update={"key_insight": get_most_significant_change(summary)})

def compare_trajectories(
    baseline: Trajectory,
    alternate: Trajectory,
    changes: List[Change],
    name: str = "Comparison"
) -> Comparison:
    return Comparison(
        id=str(uuid4()),
        name=name,
        baseline=baseline,
        alternate=alternate,
        changes=changes,
        deltas=calculate_year_deltas(baseline, alternate),
        summary=calculate_comparison_summary(baseline, alternate),
        created_at=datetime.now(timezone.utc),
    )


# -----------------------------------------------------------------------------
# Formatting
# -----------------------------------------------------------------------------
def format_retirement_delta(months_delta: int) -> str:
    if months_delta == 0:
        return "Same retirement date"
    direction = "earlier" if months_delta < 0 else "later"
    years = abs(months_delta) / 12
    if years < 1:
        return f"{abs(months_delta)} months {direction}"
    return f"{years:.1f} years {direction}"

def format_currency_delta(cents: int) -> str:
    dollars = abs(cents) / 100
    sign = "+" if cents >= 0 else "-"
    if dollars >= 1000000:
        return f"{sign}${dollars / 1000000:.2f}M"
    if dollars >= 1000:
        return f"{sign}${dollars / 1000:.0f}K"
    return f"{sign}${dollars:.0f}"

def format_work_hours_delta(hours_delta: int) -> str:
    if hours_delta == 0:
        return "Same work hours"
    direction = "fewer" if hours_delta < 0 else "more"
    hours = abs(hours_delta)
    if hours >= 2000:
        return f"{hours / 2080:.1f} years {direction} of work"
    if hours >= 40:
        return f"{hours / 40:.0f} weeks {direction} of work"
    return f"{hours:.0f} hours {direction}"

def get_most_significant_change(summary: ComparisonSummary) -> str:
    """
    Pick the headline difference. Retirement months, net worth in $1k units
    and work hours in hundreds are treated as comparable magnitudes.
    """
    candidates = []
    if summary.retirement_date_delta != 0:
        candidates.append((abs(summary.retirement_date_delta), format_retirement_delta(summary.retirement_date_delta)))
    if summary.net_worth_at_end_delta != 0:
        candidates.append((
            abs(summary.net_worth_at_end_delta) / 100000,
            f"{format_currency_delta(summary.net_worth_at_end_delta)} net worth",
        ))
    if summary.total_work_hours_delta != 0:
        candidates.append((abs(summary.total_work_hours_delta) / 100, format_work_hours_delta(summary.total_work_hours_delta)))

    if not candidates:
        return "Minimal difference between scenarios"
    # max() keeps the first of equal magnitudes
    return max(candidates, key=lambda c: c[0])[1]


# -----------------------------------------------------------------------------
# Analysis over deltas
# -----------------------------------------------------------------------------
def find_max_divergence_year(deltas: List[YearDelta]) -> Optional[int]:
    """Year with the largest absolute net worth difference (first one on ties)."""
    if not deltas:
        return None
    return max(deltas, key=lambda d: abs(d.net_worth_delta)).year

def find_crossover_year(deltas: List[YearDelta]) -> Optional[int]:
    """
    First year the net worth delta changes sign. Zero deltas have no sign
    and never count as a crossover.
    """
    last_sign = 0
    for delta in deltas:
        if delta.net_worth_delta == 0:
            continue
        sign = 1 if delta.net_worth_delta > 0 else -1
        if last_sign != 0 and sign != last_sign:
            return delta.year
        last_sign = sign
    return None

def calculate_cumulative_impact(deltas: List[YearDelta], start_year: int, end_year: int) -> CumulativeImpact:
    in_range = [d for d in deltas if start_year <= d.year <= end_year]
    if not in_range:
        return CumulativeImpact()

    net_worth_impact = in_range[-1].net_worth_delta
    return CumulativeImpact(
        net_worth_impact=net_worth_impact,
        income_impact=sum(d.income_delta for d in in_range),
        taxes_impact=sum(d.taxes_delta for d in in_range),
        average_yearly_benefit=round_cents(net_worth_impact / len(in_range)),
    )

def get_comparison_at_year(comparison: Comparison, year: int) -> Optional[YearComparison]:
    baseline_year = get_trajectory_year(comparison.baseline, year)
    alternate_year = get_trajectory_year(comparison.alternate, year)
    if baseline_year is None or alternate_year is None:
        return None
    return YearComparison(
        baseline_year=baseline_year,
        alternate_year=alternate_year,
        delta=calculate_year_delta(baseline_year, alternate_year),
    )

def find_break_even_year(deltas: List[YearDelta]) -> Optional[int]:
    """First year the running sum of net worth deltas is non-negative."""
    running = 0
    for delta in deltas:
        running += delta.net_worth_delta
        if running >= 0:
            return delta.year
    return None


# -----------------------------------------------------------------------------
# Profile diffs
# -----------------------------------------------------------------------------
def _diff_values(path: str, original: Any, new: Any, changes: List[Change]) -> None:
    if isinstance(original, dict) and isinstance(new, dict):
        for key in list(original.keys()) + [k for k in new.keys() if k not in original]:
            _diff_values(f"{path}.{key}" if path else key, original.get(key), new.get(key), changes)
        return
    if original != new:
        changes.append(Change(
            field=path,
            original_value=original,
            new_value=new,
            description=f"{path} changed from {original!r} to {new!r}",
        ))

def _keyed_by_id(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {item["id"]: item for item in items}

def derive_changes(baseline: FinancialProfile, alternate: FinancialProfile) -> List[Change]:
    """
    Field-level differences between two profiles. Income, debts, assets,
    obligations and goals are matched by id; ids and names of the profiles
    themselves are ignored.
    """
    original = baseline.model_dump(mode="json", exclude={"id", "name"})
    new = alternate.model_dump(mode="json", exclude={"id", "name"})
    for collection in ("incomes", "debts", "obligations", "assets", "goals"):
        original[collection] = _keyed_by_id(original[collection])
        new[collection] = _keyed_by_id(new[collection])

    changes: List[Change] = []
    _diff_values("", original, new, changes)
    return changes
