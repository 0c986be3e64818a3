"""
KPI calculation utilities for scenario results.

This module provides standalone analytics computed from a run's monthly
DataFrame (``ScenarioResult.to_frame()``): net worth growth, income versus
expenses, and cash versus investments. Functions return pandas Series so
results can be combined across scenarios with ``pd.concat``.
"""

from __future__ import annotations

import calendar
from datetime import date

import numpy as np
import pandas as pd

from fineventlab.core.local_date import LocalDate
from fineventlab.core.results import ScenarioResult

DAYS_PER_YEAR = 365
TREND_BAND_PCT = 5.0
INVESTABLE_CASH_SHARE = 0.2


def _as_date(value: LocalDate) -> date:
    # month-offset dates may carry a day past the end of the month
    last = calendar.monthrange(value.year, value.month)[1]
    return date(value.year, value.month, min(value.day, last))


def _years_between(start: LocalDate, end: LocalDate) -> float:
    """Fractional years between two dates on a 365-day year."""
    days = (_as_date(end) - _as_date(start)).days
    return days / DAYS_PER_YEAR


def _total_column(df: pd.DataFrame) -> pd.Series:
    return df["total"] if "total" in df.columns else df["balance"]


def month_over_month_change(df: pd.DataFrame, col: str = "balance") -> pd.Series:
    """
    Percentage change of a balance column versus the previous month.

    Months whose previous balance is zero have no defined change (NaN).

    Args:
        df: Monthly DataFrame from ``ScenarioResult.to_frame()``
        col: Balance column to compare

    Returns:
        Series of percentage changes; the first month is NaN
    """
    prev = df[col].shift(1)
    change = np.where(prev != 0, (df[col] - prev) / prev * 100, np.nan)
    return pd.Series(change, index=df.index, name=f"{col}_mom_pct")


def savings_rate(df: pd.DataFrame) -> pd.Series:
    """
    Cumulative savings rate in percent: (income - expense) / income.

    Returns:
        Series with the running savings rate (0 while no income has been seen)
    """
    income = df["income"].cumsum()
    saved = (df["income"] - df["expense"]).cumsum()
    rate = np.where(income > 0, saved / income * 100, 0.0)
    return pd.Series(rate, index=df.index, name="savings_rate_pct")


def balance_analytics(
    result: ScenarioResult, start: LocalDate, end: LocalDate
) -> pd.Series:
    """
    Net worth growth, CAGR and best/worst month.

    CAGR is only defined (not None) when both the first and last total
    balance are positive and the range spans a positive number of years.

    Returns:
        Series with growth_amount, growth_pct, cagr_pct, best_month,
        best_month_pct, worst_month, worst_month_pct
    """
    df = result.to_frame()
    if df.empty:
        return pd.Series(
            {
                "growth_amount": 0.0,
                "growth_pct": 0.0,
                "cagr_pct": None,
                "best_month": "",
                "best_month_pct": 0.0,
                "worst_month": "",
                "worst_month_pct": 0.0,
            },
            name="balance",
        )

    total = _total_column(df)
    start_balance = float(total.iloc[0])
    end_balance = float(total.iloc[-1])
    growth = end_balance - start_balance
    growth_pct = growth / start_balance * 100 if start_balance != 0 else 0.0

    years = _years_between(start, end)
    cagr = None
    if start_balance > 0 and end_balance > 0 and years > 0:
        cagr = ((end_balance / start_balance) ** (1 / years) - 1) * 100

    changes = month_over_month_change(df.assign(_total=total), "_total").dropna()
    first_month = str(df.index[0])
    if changes.empty:
        best_month, best_pct = first_month, 0.0
        worst_month, worst_pct = first_month, 0.0
    else:
        best_month, best_pct = str(changes.idxmax()), float(changes.max())
        worst_month, worst_pct = str(changes.idxmin()), float(changes.min())

    return pd.Series(
        {
            "growth_amount": growth,
            "growth_pct": growth_pct,
            "cagr_pct": cagr,
            "best_month": best_month,
            "best_month_pct": best_pct,
            "worst_month": worst_month,
            "worst_month_pct": worst_pct,
        },
        name="balance",
    )


def cashflow_trend(df: pd.DataFrame) -> str:
    """
    Compare the average net cashflow of the first and last quarter of the run.

    Returns ``improving`` or ``declining`` when the last quarter moves more
    than 5% away from the first (or, from a zero start, more than 5 currency
    units), else ``stable``.
    """
    if df.empty:
        return "stable"
    size = max(1, len(df) // 4)
    avg_first = float(df["net"].iloc[:size].mean())
    avg_last = float(df["net"].iloc[-size:].mean())

    if abs(avg_first) > 0:
        change = (avg_last - avg_first) / abs(avg_first) * 100
        if change > TREND_BAND_PCT:
            return "improving"
        if change < -TREND_BAND_PCT:
            return "declining"
        return "stable"
    if avg_last > TREND_BAND_PCT:
        return "improving"
    if avg_last < -TREND_BAND_PCT:
        return "declining"
    return "stable"


def income_expense_analytics(result: ScenarioResult) -> pd.Series:
    """
    Savings rate, negative months, totals and cashflow trend of a run.

    Returns:
        Series with savings_rate_pct, negative_months, total_income,
        total_expenses, cashflow_trend
    """
    df = result.to_frame()
    total_income = float(df["income"].sum()) if not df.empty else 0.0
    total_expenses = float(df["expense"].sum()) if not df.empty else 0.0
    rate = (
        (total_income - total_expenses) / total_income * 100
        if total_income > 0
        else 0.0
    )
    negative = int((df["expense"] > df["income"]).sum()) if not df.empty else 0
    return pd.Series(
        {
            "savings_rate_pct": rate,
            "negative_months": negative,
            "total_income": total_income,
            "total_expenses": total_expenses,
            "cashflow_trend": cashflow_trend(df),
        },
        name="income_expense",
    )


def emergency_fund_status(months: float) -> str:
    if months >= 6:
        return "healthy"
    if months >= 3:
        return "adequate"
    return "low"


def cash_investment_analytics(
    result: ScenarioResult,
    start: LocalDate,
    end: LocalDate,
    opportunity_cost_rate: float = 0.07,
) -> pd.Series:
    """
    Cash versus investments: allocation, idle-cash opportunity cost,
    emergency fund coverage and the share of growth coming from the portfolio.

    Results without portfolio tracking are treated as all cash. The
    opportunity cost assumes 20% of the average cash balance could have been
    invested at ``opportunity_cost_rate`` for the length of the run.

    Returns:
        Series with cash_pct, investments_pct, opportunity_cost,
        opportunity_cost_pct, emergency_fund_months, emergency_fund_status,
        portfolio_growth, portfolio_contribution_pct
    """
    df = result.to_frame()
    if df.empty:
        return pd.Series(
            {
                "cash_pct": 0.0,
                "investments_pct": 0.0,
                "opportunity_cost": 0.0,
                "opportunity_cost_pct": 0.0,
                "emergency_fund_months": 0.0,
                "emergency_fund_status": "low",
                "portfolio_growth": 0.0,
                "portfolio_contribution_pct": 0.0,
            },
            name="cash_investments",
        )

    cash = df["cash"] if "cash" in df.columns else df["balance"]
    assets = df["assets"] if "assets" in df.columns else pd.Series(0.0, index=df.index)
    total = _total_column(df)

    avg_cash = float(cash.mean())
    avg_assets = float(assets.mean())
    avg_total = avg_cash + avg_assets
    cash_pct = avg_cash / avg_total * 100 if avg_total > 0 else 0.0
    investments_pct = avg_assets / avg_total * 100 if avg_total > 0 else 0.0

    years = max(0.0, _years_between(start, end))
    excess_cash = avg_cash * INVESTABLE_CASH_SHARE
    gains = 0.0
    if excess_cash > 0 and years > 0:
        gains = excess_cash * ((1 + opportunity_cost_rate) ** years - 1)
    gains_pct = gains / excess_cash * 100 if excess_cash > 0 else 0.0

    avg_expenses = float(df["expense"].mean())
    fund_months = float(cash.iloc[-1]) / avg_expenses if avg_expenses > 0 else 0.0

    portfolio_growth = float(assets.iloc[-1] - assets.iloc[0])
    total_growth = float(total.iloc[-1] - total.iloc[0])
    contribution = portfolio_growth / total_growth * 100 if total_growth > 0 else 0.0

    return pd.Series(
        {
            "cash_pct": cash_pct,
            "investments_pct": investments_pct,
            "opportunity_cost": gains,
            "opportunity_cost_pct": gains_pct,
            "emergency_fund_months": fund_months,
            "emergency_fund_status": emergency_fund_status(fund_months),
            "portfolio_growth": portfolio_growth,
            "portfolio_contribution_pct": contribution,
        },
        name="cash_investments",
    )
