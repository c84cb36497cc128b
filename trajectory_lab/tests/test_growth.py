import unittest

from trajectory_lab.growth import (
    calculate_employer_match, calculate_asset_year_with_match, asset_growth_to_state,
    project_asset_over_years, calculate_retirement_readiness,
)
from trajectory_lab.models import Asset, AssetType
from trajectory_lab.money import dollars_to_cents


def _matched_401k(**overrides) -> Asset:
    values = dict(
        name="401k",
        type=AssetType.RETIREMENT_PRETAX,
        balance=dollars_to_cents(10000),
        monthly_contribution=dollars_to_cents(1000),
        expected_return=0.07,
        employer_match=0.5,
        match_limit=0.06,
    )
    values.update(overrides)
    return Asset(**values)


class TestAssetGrowth(unittest.TestCase):

    def test_employer_match_capped_by_salary_limit(self):
        """Match is 50% of the first 6% of a $100k salary: $3,000."""
        match = calculate_employer_match(_matched_401k(), dollars_to_cents(100000))
        self.assertEqual(match, dollars_to_cents(3000))

    def test_employer_match_on_small_contribution(self):
        asset = _matched_401k(monthly_contribution=dollars_to_cents(100))
        self.assertEqual(calculate_employer_match(asset, dollars_to_cents(100000)), dollars_to_cents(600))

    def test_no_match_without_parameters(self):
        self.assertEqual(calculate_employer_match(_matched_401k(employer_match=None), dollars_to_cents(100000)), 0)
        self.assertEqual(calculate_employer_match(_matched_401k(match_limit=None), dollars_to_cents(100000)), 0)

    def test_one_year_mid_year_convention(self):
        """Growth is earned on the starting balance plus half the year's contributions and match."""
        growth = calculate_asset_year_with_match(_matched_401k(), dollars_to_cents(100000), 0.05)
        self.assertEqual(growth.starting_balance, dollars_to_cents(10000))
        self.assertEqual(growth.contributions, dollars_to_cents(12000))
        self.assertEqual(growth.employer_match, dollars_to_cents(3000))
        self.assertEqual(growth.growth, dollars_to_cents(1225))
        self.assertEqual(growth.ending_balance, dollars_to_cents(26225))

    def test_default_return_when_unset(self):
        asset = Asset(balance=dollars_to_cents(10000), expected_return=None)
        growth = calculate_asset_year_with_match(asset, 0, 0.05)
        self.assertEqual(growth.growth, dollars_to_cents(500))

    def test_starting_balance_override(self):
        asset = Asset(balance=dollars_to_cents(10000), expected_return=0.10)
        growth = calculate_asset_year_with_match(asset, 0, 0.05, starting_balance=dollars_to_cents(20000))
        self.assertEqual(growth.ending_balance, dollars_to_cents(22000))

    def test_growth_to_state(self):
        growth = calculate_asset_year_with_match(_matched_401k(), dollars_to_cents(100000), 0.05)
        state = asset_growth_to_state("abc", growth)
        self.assertEqual(state.asset_id, "abc")
        self.assertEqual(state.balance, growth.ending_balance)
        self.assertEqual(state.contributions_this_year, growth.contributions)
        self.assertEqual(state.growth_this_year, growth.growth)
        self.assertEqual(state.employer_match_this_year, growth.employer_match)

    def test_project_asset_over_years_compounds(self):
        asset = Asset(balance=dollars_to_cents(10000), expected_return=0.10)
        results = project_asset_over_years(asset, 3, 0, 0.05)
        self.assertEqual([r.ending_balance for r in results], [1100000, 1210000, 1331000])
        self.assertEqual(results[1].starting_balance, results[0].ending_balance)


class TestRetirementReadiness(unittest.TestCase):

    def test_ready(self):
        """$1M at 4% sustains $40k a year, enough for $39k of desired income."""
        result = calculate_retirement_readiness(dollars_to_cents(1000000), dollars_to_cents(39000), 0.04)
        self.assertTrue(result.is_ready)
        self.assertEqual(result.monthly_income, 333333)
        self.assertEqual(result.shortfall, 0)

    def test_not_ready(self):
        result = calculate_retirement_readiness(dollars_to_cents(1000000), dollars_to_cents(50000), 0.04)
        self.assertFalse(result.is_ready)
        self.assertEqual(result.required_nest_egg, dollars_to_cents(1250000))
        self.assertEqual(result.shortfall, dollars_to_cents(250000))

    def test_zero_withdrawal_rate(self):
        result = calculate_retirement_readiness(dollars_to_cents(1000000), dollars_to_cents(50000), 0.0)
        self.assertFalse(result.is_ready)
        self.assertEqual(result.monthly_income, 0)
        self.assertIsNone(result.required_nest_egg)
        self.assertIsNone(result.shortfall)

    def test_zero_withdrawal_rate_with_no_income_needed(self):
        result = calculate_retirement_readiness(0, 0, 0.0)
        self.assertTrue(result.is_ready)
        self.assertEqual(result.shortfall, 0)


if __name__ == '__main__':
    unittest.main()
