import unittest
from datetime import datetime

from pydantic import ValidationError

from trajectory_lab.models import Debt, DebtType, Asset, AssetType, Goal, GoalType, MonthYear, Obligation
from trajectory_lab.money import dollars_to_cents
from trajectory_lab.projector import (
    ProjectionState, ReadyAsOf, NotYetReady, project_year, resolve_base_year,
    generate_trajectory, generate_quick_trajectory,
    get_trajectory_year, get_milestones_for_year, get_milestones_by_type,
    find_net_worth_milestone_year, find_debt_free_year,
)
from trajectory_lab.schemas import MilestoneType
from .test_helpers import BASE_YEAR, make_assumptions, make_salary, make_401k, make_profile


class TestTrajectoryShape(unittest.TestCase):

    def test_empty_profile_covers_every_year(self):
        """A profile with nothing in it still yields one year per year of life left."""
        profile = make_profile(assumptions=make_assumptions(life_expectancy=85))
        trajectory = generate_trajectory(profile)

        self.assertEqual(len(trajectory.years), 55)
        self.assertEqual(trajectory.summary.total_years, 55)
        self.assertEqual(trajectory.years[0].year, BASE_YEAR)
        self.assertEqual(trajectory.years[0].age, 30)
        self.assertEqual(trajectory.years[-1].age, 84)
        for year in trajectory.years:
            self.assertEqual(year.gross_income, 0)
            self.assertEqual(year.net_worth, 0)
            self.assertEqual(year.savings_rate, 0.0)
            self.assertEqual(year.effective_hourly_rate, 0)

    def test_no_years_left(self):
        profile = make_profile(assumptions=make_assumptions(current_age=90, life_expectancy=85))
        trajectory = generate_trajectory(profile)
        self.assertEqual(trajectory.years, [])
        self.assertEqual(trajectory.summary.net_worth_at_end, 0)
        self.assertIsNone(trajectory.summary.retirement_year)

    def test_income_growth(self):
        profile = make_profile(
            incomes=[make_salary(100000, expected_growth=0.03)],
            assumptions=make_assumptions(life_expectancy=35),
        )
        trajectory = generate_trajectory(profile)

        self.assertEqual(len(trajectory.years), 5)
        self.assertEqual(trajectory.years[0].gross_income, dollars_to_cents(100000))
        last = trajectory.years[-1].gross_income
        self.assertGreater(last, dollars_to_cents(112000))
        self.assertLess(last, dollars_to_cents(113000))
        self.assertEqual(trajectory.years[0].total_work_hours, 2080)

    def test_net_worth_identity_every_year(self):
        profile = make_profile(
            incomes=[make_salary(90000)],
            debts=[Debt(name="Car", type=DebtType.AUTO, principal=dollars_to_cents(20000), interest_rate=0.06, actual_payment=dollars_to_cents(400))],
            assets=[make_401k(20000, 500), Asset(name="Savings", balance=dollars_to_cents(5000), expected_return=0.02)],
            obligations=[Obligation(name="Rent", amount=dollars_to_cents(1500))],
        )
        trajectory = generate_trajectory(profile)

        for year in trajectory.years:
            self.assertEqual(year.net_worth, year.total_assets - year.total_debt)
            self.assertEqual(year.total_debt, sum(d.remaining_principal for d in year.debts))
            self.assertEqual(year.total_assets, sum(a.balance for a in year.assets))
            self.assertEqual(year.net_income, year.gross_income - year.total_taxes)
            self.assertEqual(
                year.discretionary_income,
                year.net_income - year.total_debt_payment - year.total_obligations,
            )

    def test_obligations_inflate(self):
        profile = make_profile(obligations=[Obligation(name="Rent", amount=dollars_to_cents(1000))])
        trajectory = generate_trajectory(profile)
        self.assertEqual(trajectory.years[0].total_obligations, dollars_to_cents(12000))
        self.assertEqual(trajectory.years[1].total_obligations, dollars_to_cents(12360))

    def test_pre_tax_contributions_lower_taxes(self):
        with_401k = make_profile(incomes=[make_salary(100000)], assets=[make_401k(0, 1000)])
        without = make_profile(incomes=[make_salary(100000)])
        self.assertLess(
            generate_trajectory(with_401k).years[0].tax_federal,
            generate_trajectory(without).years[0].tax_federal,
        )

    def test_profile_base_year_and_override(self):
        profile = make_profile(assumptions=make_assumptions(life_expectancy=32))
        self.assertEqual(generate_trajectory(profile).years[0].year, BASE_YEAR)
        self.assertEqual(generate_trajectory(profile, base_year=2030).years[0].year, 2030)

    def test_unknown_state_warns_once(self):
        """An unsupported state is reported once per trajectory, not once per year."""
        profile = make_profile(incomes=[make_salary()], assumptions=make_assumptions(state="ZZ"))
        with self.assertLogs("trajectory_lab", level="WARNING") as logs:
            trajectory = generate_trajectory(profile)
        self.assertEqual(len(logs.records), 1)
        self.assertEqual(len(trajectory.years), 10)
        self.assertTrue(all(year.tax_state == 0 for year in trajectory.years))

    def test_total_taxes_serialized(self):
        trajectory = generate_trajectory(make_profile(incomes=[make_salary()]))
        dumped = trajectory.years[0].model_dump()
        self.assertEqual(dumped["total_taxes"], dumped["tax_federal"] + dumped["tax_state"] + dumped["tax_fica"])

    def test_base_year_defaults_to_current_year(self):
        profile = make_profile(assumptions=make_assumptions(base_year=None))
        self.assertEqual(resolve_base_year(profile), datetime.now().year)


class TestProjectYear(unittest.TestCase):

    def test_step_returns_new_state(self):
        debt = Debt(name="Loan", principal=dollars_to_cents(12000), interest_rate=0.0, actual_payment=dollars_to_cents(500))
        asset = Asset(name="Savings", balance=dollars_to_cents(1000), expected_return=0.0)
        profile = make_profile(debts=[debt], assets=[asset])

        state = ProjectionState.initial(profile)
        step = project_year(profile, state, 0, BASE_YEAR)

        self.assertEqual(step.year.year, BASE_YEAR)
        self.assertEqual(step.state.debt_balances[debt.id], dollars_to_cents(6000))
        self.assertEqual(step.state.asset_balances[asset.id], dollars_to_cents(1000))
        self.assertEqual(step.state.previous_year, step.year)
        # Original state is untouched
        self.assertEqual(state.debt_balances[debt.id], dollars_to_cents(12000))
        self.assertIsNone(state.previous_year)

    def test_state_is_frozen(self):
        state = ProjectionState.initial(make_profile())
        with self.assertRaises(ValidationError):
            state.previous_year = None

    def test_retirement_is_sticky(self):
        profile = make_profile()
        state = ProjectionState.initial(profile).model_copy(
            update={"retirement": ReadyAsOf(year=2000, monthly_income=123)}
        )
        step = project_year(profile, state, 0, BASE_YEAR)
        self.assertEqual(step.state.retirement, ReadyAsOf(year=2000, monthly_income=123))
        self.assertEqual([m for m in step.milestones if m.type == MilestoneType.RETIREMENT_READY], [])


class TestDebtsAndAssets(unittest.TestCase):

    def test_car_loan_payoff_milestone(self):
        debt = Debt(name="Car", type=DebtType.AUTO, principal=dollars_to_cents(15000), interest_rate=0.05, actual_payment=dollars_to_cents(500))
        profile = make_profile(incomes=[make_salary(80000)], debts=[debt])
        trajectory = generate_trajectory(profile)

        payoffs = get_milestones_by_type(trajectory, MilestoneType.DEBT_PAYOFF)
        self.assertEqual(len(payoffs), 1)
        milestone = payoffs[0]
        self.assertEqual(milestone.related_id, debt.id)
        self.assertEqual(milestone.description, "Car paid off")

        payoff_year = get_trajectory_year(trajectory, milestone.year)
        debt_state = payoff_year.debts[0]
        self.assertTrue(debt_state.is_paid_off)
        self.assertEqual(debt_state.payoff_month, milestone.month)
        self.assertEqual(find_debt_free_year(trajectory), milestone.year)

        # Later years stay paid off without new milestones
        later = [y for y in trajectory.years if y.year > milestone.year]
        self.assertTrue(all(y.total_debt == 0 and y.total_debt_payment == 0 for y in later))
        self.assertTrue(all(y.debts[0].payoff_month is None for y in later))
        self.assertGreater(trajectory.summary.total_lifetime_interest, 0)

    def test_retirement_savings_grow(self):
        """$50k in a 401k plus $1,000/month at 7% passes $200k within ten years."""
        profile = make_profile(incomes=[make_salary(100000)], assets=[make_401k(50000, 1000)])
        trajectory = generate_trajectory(profile)

        self.assertEqual(len(trajectory.years), 10)
        self.assertGreater(trajectory.years[-1].total_assets, dollars_to_cents(200000))
        self.assertGreater(trajectory.years[-1].total_assets, trajectory.years[0].total_assets)
        self.assertGreater(trajectory.years[0].savings_rate, 0)

    def test_market_return_used_when_asset_has_none(self):
        asset = Asset(name="Brokerage", type=AssetType.INVESTMENT, balance=dollars_to_cents(10000))
        profile = make_profile(assets=[asset], assumptions=make_assumptions(market_return=0.10, life_expectancy=31))
        trajectory = generate_trajectory(profile)
        self.assertEqual(trajectory.years[0].assets[0].growth_this_year, dollars_to_cents(1000))

    def test_pmi_removed_once(self):
        mortgage = Debt(
            name="Home",
            type=DebtType.MORTGAGE,
            principal=dollars_to_cents(280000),
            interest_rate=0.065,
            actual_payment=dollars_to_cents(1770),
            property_value=dollars_to_cents(300000),
            pmi_threshold=0.8,
        )
        profile = make_profile(incomes=[make_salary(120000)], debts=[mortgage])
        trajectory = generate_trajectory(profile)

        self.assertTrue(trajectory.years[0].paying_pmi)
        first = trajectory.years[0]
        self.assertEqual(first.home_equity, dollars_to_cents(300000) - first.total_debt)

        removals = get_milestones_by_type(trajectory, MilestoneType.PMI_REMOVED)
        self.assertEqual(len(removals), 1)
        removal_year = get_trajectory_year(trajectory, removals[0].year)
        previous_year = get_trajectory_year(trajectory, removals[0].year - 1)
        self.assertFalse(removal_year.paying_pmi)
        self.assertTrue(previous_year.paying_pmi)
        self.assertLessEqual(removal_year.ltv_ratio, 0.8)
        self.assertEqual(removals[0].related_id, mortgage.id)

    def test_no_mortgage_housing_fields(self):
        trajectory = generate_trajectory(make_profile(incomes=[make_salary(50000)]))
        for year in trajectory.years:
            self.assertEqual(year.home_equity, 0)
            self.assertEqual(year.ltv_ratio, 0.0)
            self.assertFalse(year.paying_pmi)


class TestMilestones(unittest.TestCase):

    def test_net_worth_milestone(self):
        savings = Asset(name="Savings", balance=dollars_to_cents(95000), expected_return=0.10)
        trajectory = generate_trajectory(make_profile(assets=[savings]))

        net_worth = get_milestones_by_type(trajectory, MilestoneType.NET_WORTH_MILESTONE)
        self.assertEqual(net_worth[0].year, BASE_YEAR)
        self.assertEqual(net_worth[0].month, 6)
        self.assertEqual(net_worth[0].description, "Net worth reached $100,000")
        self.assertEqual(find_net_worth_milestone_year(trajectory, dollars_to_cents(100000)), BASE_YEAR)

    def test_only_lowest_threshold_recorded_per_year(self):
        """Jumping past two thresholds in one year records only the lower one."""
        savings = Asset(name="Savings", balance=dollars_to_cents(240000), expected_return=0.10)
        trajectory = generate_trajectory(make_profile(assets=[savings]))

        descriptions = [m.description for m in get_milestones_by_type(trajectory, MilestoneType.NET_WORTH_MILESTONE)]
        self.assertEqual(descriptions[0], "Net worth reached $100,000")
        self.assertNotIn("Net worth reached $250,000", descriptions)
        self.assertIn("Net worth reached $500,000", descriptions)

    def test_goals(self):
        car = Debt(name="Car", type=DebtType.AUTO, principal=dollars_to_cents(20000), interest_rate=0.05, actual_payment=dollars_to_cents(300))
        savings = Asset(name="Savings", balance=dollars_to_cents(10000), expected_return=0.0)
        emergency = Goal(name="Emergency fund", type=GoalType.EMERGENCY_FUND, target_amount=dollars_to_cents(5000), target_date=MonthYear(month=3, year=2026))
        debt_free = Goal(name="Debt free", type=GoalType.DEBT_FREE, target_date=MonthYear(month=9, year=2025))
        vacation = Goal(name="Vacation", type=GoalType.PURCHASE, target_amount=dollars_to_cents(1), target_date=MonthYear(month=7, year=2027))
        profile = make_profile(debts=[car], assets=[savings], goals=[emergency, debt_free, vacation])
        trajectory = generate_trajectory(profile)

        achieved = get_milestones_by_type(trajectory, MilestoneType.GOAL_ACHIEVED)
        missed = get_milestones_by_type(trajectory, MilestoneType.GOAL_MISSED)
        self.assertEqual([m.description for m in achieved], ["Emergency fund achieved"])
        self.assertEqual(achieved[0].month, 3)
        self.assertEqual(achieved[0].year, 2026)
        self.assertEqual([m.description for m in missed], ["Debt free missed", "Vacation missed"])
        self.assertEqual(trajectory.summary.goals_achieved, 1)
        self.assertEqual(trajectory.summary.goals_missed, 2)

    def test_milestone_queries(self):
        savings = Asset(name="Savings", balance=dollars_to_cents(95000), expected_return=0.10)
        trajectory = generate_trajectory(make_profile(assets=[savings]))

        for milestone in get_milestones_for_year(trajectory, BASE_YEAR):
            self.assertEqual(milestone.year, BASE_YEAR)
        self.assertIsNone(get_trajectory_year(trajectory, 1990))
        self.assertEqual(get_trajectory_year(trajectory, BASE_YEAR + 1).year, BASE_YEAR + 1)
        self.assertIsNone(find_net_worth_milestone_year(trajectory, dollars_to_cents(100000000)))
        self.assertEqual(find_debt_free_year(trajectory), BASE_YEAR)


class TestRetirement(unittest.TestCase):

    def _profile(self, replacement_ratio: float):
        return make_profile(
            incomes=[make_salary(100000)],
            assets=[make_401k(50000, 1000)],
            assumptions=make_assumptions(life_expectancy=85, income_replacement_ratio=replacement_ratio),
        )

    def test_retirement_milestone_and_summary(self):
        trajectory = generate_trajectory(self._profile(0.4))
        summary = trajectory.summary

        self.assertIsNotNone(summary.retirement_year)
        self.assertEqual(summary.retirement_age, 30 + (summary.retirement_year - BASE_YEAR))
        ready = get_milestones_by_type(trajectory, MilestoneType.RETIREMENT_READY)
        self.assertEqual(len(ready), 1)
        self.assertEqual(ready[0].year, summary.retirement_year)
        self.assertTrue(ready[0].description.startswith("Retirement ready - can sustain $"))
        self.assertEqual(
            summary.net_worth_at_retirement,
            get_trajectory_year(trajectory, summary.retirement_year).net_worth,
        )

    def test_lower_income_need_retires_no_later(self):
        baseline = generate_trajectory(self._profile(0.8)).summary.retirement_year
        alternate = generate_trajectory(self._profile(0.4)).summary.retirement_year
        self.assertIsNotNone(alternate)
        if baseline is not None:
            self.assertLessEqual(alternate, baseline)

    def test_never_ready_keeps_end_net_worth(self):
        profile = make_profile(
            incomes=[make_salary(100000)],
            assumptions=make_assumptions(retirement_withdrawal_rate=0.0),
        )
        trajectory = generate_trajectory(profile)
        self.assertIsNone(trajectory.summary.retirement_year)
        self.assertIsNone(trajectory.summary.retirement_age)
        self.assertEqual(trajectory.summary.net_worth_at_retirement, trajectory.summary.net_worth_at_end)

    def test_initial_state_not_ready(self):
        self.assertEqual(ProjectionState.initial(make_profile()).retirement, NotYetReady())


class TestQuickTrajectory(unittest.TestCase):

    def test_preview_length(self):
        profile = make_profile(incomes=[make_salary(100000)], assumptions=make_assumptions(life_expectancy=85))
        trajectory = generate_quick_trajectory(profile, 10)

        self.assertEqual(len(trajectory.years), 10)
        self.assertEqual(trajectory.years[-1].year, BASE_YEAR + 9)
        self.assertEqual(profile.assumptions.life_expectancy, 85)

    def test_matches_full_trajectory_prefix(self):
        profile = make_profile(incomes=[make_salary(100000)], assets=[make_401k(10000, 500)], assumptions=make_assumptions(life_expectancy=85))
        quick = generate_quick_trajectory(profile, 5)
        full = generate_trajectory(profile)
        self.assertEqual([y.net_worth for y in quick.years], [y.net_worth for y in full.years[:5]])


if __name__ == '__main__':
    unittest.main()
