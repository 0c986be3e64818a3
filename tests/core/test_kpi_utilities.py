"""
Tests for KPI utility functions.
"""

import numpy as np
import pandas as pd
import pytest

from fineventlab.core.errors import ConfigError
from fineventlab.core.events import make_one_off, make_recurring
from fineventlab.core.local_date import ld
from fineventlab.core.portfolio import PortfolioAsset
from fineventlab.core.results import aggregate_totals
from fineventlab.core.scenario import Scenario, run_scenario
from fineventlab.core.utils import HORIZON_YEARS, horizon_end, monthly_rate
from fineventlab.kpi import (
    balance_analytics,
    cash_investment_analytics,
    cashflow_trend,
    emergency_fund_status,
    income_expense_analytics,
    month_over_month_change,
    savings_rate,
)

START = ld(2025, 1, 1)
END = ld(2025, 12, 1)


class TestKPIUtilities:
    """Test KPI utility functions."""

    @pytest.fixture
    def steady_result(self):
        """Salary 3000, rent 1000, starting from zero."""
        scenario = Scenario(
            "Steady",
            [
                make_recurring("Salary", 3000, "income", "monthly", START),
                make_recurring("Rent", 1000, "expense", "monthly", START),
            ],
        )
        return scenario.run(START, END)

    @pytest.fixture
    def invested_result(self):
        scenario = Scenario(
            "Invested",
            [
                make_recurring("Salary", 3000, "income", "monthly", START),
                make_recurring("Rent", 2000, "expense", "monthly", START),
            ],
        )
        return run_scenario(
            scenario,
            START,
            END,
            initial_balance=4000,
            portfolio_assets=[PortfolioAsset("etf", "ETF", "etf", 12000.0)],
            growth_rate=0.05,
        )

    def test_frame_schema(self, steady_result):
        df = steady_result.to_frame()
        assert list(df.columns) == ["income", "expense", "net", "balance"]
        assert df.index.name == "month"
        assert str(df.index[0]) == "2025-01"
        assert df["income"].iloc[0] == 3000
        assert df["expense"].iloc[0] == 1000

    def test_month_over_month_change(self, steady_result):
        change = month_over_month_change(steady_result.to_frame())
        assert change.name == "balance_mom_pct"
        assert np.isnan(change.iloc[0])
        assert change.iloc[1] == pytest.approx(100.0)
        assert change.iloc[2] == pytest.approx(50.0)

    def test_savings_rate(self, steady_result):
        rate = savings_rate(steady_result.to_frame())
        assert rate.name == "savings_rate_pct"
        assert len(rate) == 12
        assert rate.to_numpy() == pytest.approx([200 / 3] * len(rate))

    def test_balance_analytics(self, steady_result):
        kpis = balance_analytics(steady_result, START, END)
        assert kpis["growth_amount"] == pytest.approx(22000)
        assert kpis["growth_pct"] == pytest.approx(1100)
        assert kpis["cagr_pct"] > 0
        assert kpis["best_month"] == "2025-02"
        assert kpis["best_month_pct"] == pytest.approx(100.0)
        assert kpis["worst_month"] == "2025-12"
        assert kpis["worst_month_pct"] == pytest.approx(2000 / 22000 * 100)

    def test_cagr_undefined_for_non_positive_balance(self):
        scenario = Scenario("Debt", [make_recurring("Rent", 100, "expense", "monthly", START)])
        kpis = balance_analytics(scenario.run(START, END), START, END)
        assert kpis["cagr_pct"] is None

    def test_income_expense_analytics(self, steady_result):
        kpis = income_expense_analytics(steady_result)
        assert kpis["total_income"] == 36000
        assert kpis["total_expenses"] == 12000
        assert kpis["savings_rate_pct"] == pytest.approx(200 / 3)
        assert kpis["negative_months"] == 0
        assert kpis["cashflow_trend"] == "stable"

    def test_negative_months(self):
        scenario = Scenario(
            "Bumpy",
            [
                make_recurring("Salary", 1000, "income", "monthly", START),
                make_one_off("Car", 5000, "expense", ld(2025, 3, 1)),
            ],
        )
        kpis = income_expense_analytics(scenario.run(START, END))
        assert kpis["negative_months"] == 1

    def test_cashflow_trend(self):
        index = pd.period_range("2025-01", periods=8, freq="M")
        improving = pd.DataFrame({"net": [100, 100, 120, 130, 140, 150, 200, 200]}, index=index)
        declining = pd.DataFrame({"net": [200, 200, 150, 140, 130, 120, 100, 100]}, index=index)
        from_zero = pd.DataFrame({"net": [0, 0, 0, 0, 0, 0, 10, 10]}, index=index)
        assert cashflow_trend(improving) == "improving"
        assert cashflow_trend(declining) == "declining"
        assert cashflow_trend(from_zero) == "improving"
        assert cashflow_trend(pd.DataFrame({"net": []})) == "stable"

    def test_emergency_fund_status(self):
        assert emergency_fund_status(7) == "healthy"
        assert emergency_fund_status(3) == "adequate"
        assert emergency_fund_status(2.9) == "low"

    def test_cash_only_result(self, steady_result):
        kpis = cash_investment_analytics(steady_result, START, END)
        assert kpis["cash_pct"] == pytest.approx(100.0)
        assert kpis["investments_pct"] == 0.0
        assert kpis["emergency_fund_months"] == pytest.approx(24.0)
        assert kpis["emergency_fund_status"] == "healthy"
        assert kpis["portfolio_growth"] == 0.0
        assert kpis["opportunity_cost"] > 0

    def test_cash_investment_analytics(self, invested_result):
        kpis = cash_investment_analytics(invested_result, START, END)
        df = invested_result.to_frame()
        avg_cash = df["cash"].mean()
        avg_assets = df["assets"].mean()
        assert kpis["cash_pct"] == pytest.approx(avg_cash / (avg_cash + avg_assets) * 100)
        assert kpis["cash_pct"] + kpis["investments_pct"] == pytest.approx(100.0)
        assert kpis["portfolio_growth"] > 0
        assert 0 < kpis["portfolio_contribution_pct"] < 100
        assert kpis["emergency_fund_months"] == pytest.approx(16000 / 2000)

    def test_empty_result(self):
        result = Scenario("Empty").run(END, START)
        assert balance_analytics(result, END, START)["growth_amount"] == 0.0
        assert income_expense_analytics(result)["total_income"] == 0.0
        assert cash_investment_analytics(result, END, START)["emergency_fund_status"] == "low"

    def test_yearly_aggregation(self):
        scenario = Scenario(
            "Years", [make_recurring("Salary", 100, "income", "monthly", START)]
        )
        yearly = scenario.run(START, ld(2026, 6, 1)).yearly()
        assert list(yearly["income"]) == [1200, 600]
        assert list(yearly["balance"]) == [1200, 1800]

    def test_aggregate_monthly_is_identity(self, steady_result):
        df = steady_result.to_frame()
        assert aggregate_totals(df, "M") is df


class TestRatesAndHorizons:
    """Growth-rate conversion and horizon resolution."""

    def test_monthly_rate_compounds_to_annual(self):
        assert (1 + monthly_rate(0.07)) ** 12 - 1 == pytest.approx(0.07)
        assert monthly_rate(0.0) == 0.0

    def test_monthly_rate_rejects_total_loss(self):
        with pytest.raises(ConfigError):
            monthly_rate(-1.0)

    @pytest.mark.parametrize("years", HORIZON_YEARS)
    def test_horizon_month_count(self, years):
        end = horizon_end(ld(2025, 1, 15), years)
        assert end == ld(2025 + years, 1, 15)
        assert ld(2025, 1, 15).months_until(end) + 1 == years * 12 + 1

    def test_negative_horizon(self):
        with pytest.raises(ConfigError):
            horizon_end(START, -1)
