"""
Monthly Forecasting Engine.

Projects month-end revenue, cost, conversions, clicks, and impressions from
the daily history of campaign metrics, scores how much the projection can be
trusted, and branches it into four scenarios.

Algorithm Overview:
    1. Aggregate MetricRecords into per-day totals (ascending date).
    2. linear_forecast each daily series over the days left in the month:
       mean point-to-point delta over the trailing 14 days, extrapolated from
       the last value and clamped at zero. This is the realistic scenario.
    3. Multiply the realistic baseline by fixed per-scenario factors to get
       the optimistic, conservative, and pessimistic scenarios. Profit is
       recomputed as revenue - cost for every scenario.
    4. Score confidence from the volatility (population std / mean) of the
       daily revenue series, clamped to [30, 95], then lower it when records
       had fields the parser could not read.
    5. Compare realistic revenue with the monthly goal and run the insight
       rules (pulse.services.insights).

Constants:
    TREND_WINDOW_DAYS = 14
    CONFIDENCE_FLOOR = 30, CONFIDENCE_CEILING = 95
    GOAL_TOLERANCE_PCT = 10

Usage:
    from pulse.services.forecasting import compute_forecast

    forecast = compute_forecast(records, as_of=date(2026, 10, 19))
    forecast.scenarios.realistic.revenue
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from pulse.core.timekeeping import days_remaining_in_month
from pulse.models.enums import GoalStatus, ScenarioName
from pulse.models.schemas import (
    ForecastScenario,
    ForecastScenarios,
    MetricRecord,
    MonthlyForecast,
)
from pulse.services.insights import (
    DEFAULT_BUDGET_CEILING,
    InsightContext,
    generate_insights,
)


# =============================================================================
# Constants
# =============================================================================

# Number of trailing daily points used to estimate the trend
TREND_WINDOW_DAYS: int = 14

# Confidence bounds for series with at least 3 points
CONFIDENCE_FLOOR: float = 30.0
CONFIDENCE_CEILING: float = 95.0

# Series shorter than this get the floor confidence
MIN_CONFIDENCE_POINTS: int = 3

# Maximum confidence points removed when every record had absent fields
INCOMPLETE_DATA_PENALTY: float = 20.0

# goal_status is above/below when realistic revenue deviates by at least this much
GOAL_TOLERANCE_PCT: float = 10.0

DEFAULT_MONTHLY_GOAL: float = 15000.0

# Per-scenario multipliers applied to the realistic baseline.
# profit is never multiplied; it is always revenue - cost.
SCENARIO_MULTIPLIERS: Dict[ScenarioName, Dict[str, float]] = {
    ScenarioName.OPTIMISTIC: {
        'revenue': 1.20,
        'cost': 1.10,
        'conversions': 1.15,
        'clicks': 1.10,
        'impressions': 1.10,
    },
    ScenarioName.REALISTIC: {
        'revenue': 1.0,
        'cost': 1.0,
        'conversions': 1.0,
        'clicks': 1.0,
        'impressions': 1.0,
    },
    ScenarioName.CONSERVATIVE: {
        'revenue': 0.85,
        'cost': 0.95,
        'conversions': 0.90,
        'clicks': 0.90,
        'impressions': 0.90,
    },
    ScenarioName.PESSIMISTIC: {
        'revenue': 0.70,
        'cost': 0.90,
        'conversions': 0.80,
        'clicks': 0.85,
        'impressions': 0.85,
    },
}


# =============================================================================
# Daily Aggregation
# =============================================================================


@dataclass
class DailyMetrics:
    """
    Totals across all campaigns for one day.

    Attributes:
        date: The day.
        impressions, clicks, cost, revenue, conversions: Summed metrics.
        record_count: Number of MetricRecords that contributed.
        incomplete_records: Contributing records with absent numeric fields.
    """
    date: date
    impressions: float = 0.0
    clicks: float = 0.0
    cost: float = 0.0
    revenue: float = 0.0
    conversions: float = 0.0
    record_count: int = 0
    incomplete_records: int = 0


def aggregate_daily(records: Sequence[MetricRecord]) -> List[DailyMetrics]:
    """
    Sum records per date.

    Returns:
        One DailyMetrics per distinct date, in ascending date order.
    """
    by_date: Dict[date, DailyMetrics] = {}
    for record in records:
        daily = by_date.get(record.date)
        if daily is None:
            daily = DailyMetrics(date=record.date)
            by_date[record.date] = daily
        daily.impressions += record.impressions
        daily.clicks += record.clicks
        daily.cost += record.cost
        daily.revenue += record.revenue
        daily.conversions += record.conversions
        daily.record_count += 1
        if record.missingFields:
            daily.incomplete_records += 1
    return [by_date[d] for d in sorted(by_date)]


def weekday_revenue_pattern(daily: Sequence[DailyMetrics]) -> Dict[int, float]:
    """
    Mean daily revenue per weekday (Monday=0 ... Sunday=6).

    Weekdays with no history are omitted.
    """
    buckets: Dict[int, List[float]] = {}
    for day in daily:
        buckets.setdefault(day.date.weekday(), []).append(day.revenue)
    return {weekday: float(np.mean(values)) for weekday, values in sorted(buckets.items())}


# =============================================================================
# Projection and Confidence
# =============================================================================


def linear_forecast(series: Sequence[float], horizon_days: int) -> float:
    """
    Extrapolate a series by its mean daily change.

    Takes the trailing TREND_WINDOW_DAYS points, averages the point-to-point
    deltas, and projects horizon_days ahead of the last value.

    Args:
        series: Values in chronological order.
        horizon_days: Number of days to project.

    Returns:
        last + mean_delta * horizon_days, never below 0. Returns 0 for series
        with fewer than 2 points.

    Example:
        >>> linear_forecast([100, 110, 120, 130, 140, 150, 160], 7)
        230.0
    """
    if len(series) < 2:
        return 0.0

    recent = np.asarray(series[-TREND_WINDOW_DAYS:], dtype=np.float64)
    daily_growth = float(np.mean(np.diff(recent)))
    projected = float(recent[-1]) + daily_growth * horizon_days
    return max(0.0, projected)


def calculate_confidence(series: Sequence[float]) -> float:
    """
    Stability score in [30, 95] derived from the volatility of a series.

    volatility = population std / mean (1 when the mean is 0);
    confidence = clamp(100 * (1 - volatility), 30, 95).
    For a fixed mean, a larger spread never increases the score.

    Returns:
        CONFIDENCE_FLOOR for series with fewer than 3 points.
    """
    if len(series) < MIN_CONFIDENCE_POINTS:
        return CONFIDENCE_FLOOR

    values = np.asarray(series, dtype=np.float64)
    mean_val = float(np.mean(values))
    std_val = float(np.std(values))  # Population std (ddof=0)

    volatility = std_val / mean_val if mean_val > 0 else 1.0
    stability = max(0.0, 1.0 - volatility)
    return min(CONFIDENCE_CEILING, max(CONFIDENCE_FLOOR, stability * 100.0))


def apply_incomplete_penalty(confidence: float, daily: Sequence[DailyMetrics]) -> float:
    """
    Lower confidence in proportion to the share of incomplete records.

    Records whose numeric fields could not be parsed were counted as zero;
    the forecast built on them is less trustworthy. The penalty never pushes
    the score below CONFIDENCE_FLOOR.
    """
    total = sum(day.record_count for day in daily)
    if total == 0:
        return confidence
    incomplete = sum(day.incomplete_records for day in daily)
    if incomplete == 0:
        return confidence
    penalized = confidence - INCOMPLETE_DATA_PENALTY * (incomplete / total)
    return max(min(confidence, CONFIDENCE_FLOOR), penalized)


# =============================================================================
# Scenarios and Goal
# =============================================================================


def build_scenario(baseline: ForecastScenario, name: ScenarioName) -> ForecastScenario:
    """Apply one scenario's multipliers to the realistic baseline."""
    factors = SCENARIO_MULTIPLIERS[name]
    revenue = baseline.revenue * factors['revenue']
    cost = baseline.cost * factors['cost']
    return ForecastScenario(
        revenue=revenue,
        cost=cost,
        profit=revenue - cost,
        conversions=baseline.conversions * factors['conversions'],
        clicks=baseline.clicks * factors['clicks'],
        impressions=baseline.impressions * factors['impressions'],
    )


def build_scenarios(baseline: ForecastScenario) -> ForecastScenarios:
    """Branch the realistic baseline into the four named scenarios."""
    return ForecastScenarios(
        optimistic=build_scenario(baseline, ScenarioName.OPTIMISTIC),
        realistic=build_scenario(baseline, ScenarioName.REALISTIC),
        conservative=build_scenario(baseline, ScenarioName.CONSERVATIVE),
        pessimistic=build_scenario(baseline, ScenarioName.PESSIMISTIC),
    )


def determine_goal_status(projected_revenue: float, monthly_goal: float) -> Tuple[GoalStatus, float]:
    """
    Compare projected revenue with the monthly goal.

    Returns:
        (goal_status, goal_percentage) where goal_percentage is the signed
        deviation from the goal in percent.
    """
    goal_percentage = (projected_revenue / monthly_goal - 1.0) * 100.0
    if goal_percentage >= GOAL_TOLERANCE_PCT:
        return GoalStatus.ABOVE, goal_percentage
    if goal_percentage <= -GOAL_TOLERANCE_PCT:
        return GoalStatus.BELOW, goal_percentage
    return GoalStatus.ONTRACK, goal_percentage


# =============================================================================
# Main Entry Point
# =============================================================================


def compute_forecast(
    records: Sequence[MetricRecord],
    as_of: date,
    monthly_goal: Optional[float] = None,
    budget_ceiling: Optional[float] = None,
) -> MonthlyForecast:
    """
    Build the month-end forecast from campaign history.

    Args:
        records: Campaign metrics in any order, already in one currency.
        as_of: Reference-timezone date the forecast is computed for; sets
            daysRemaining.
        monthly_goal: Revenue goal (default DEFAULT_MONTHLY_GOAL).
        budget_ceiling: Projected-cost ceiling for the budget insight
            (default DEFAULT_BUDGET_CEILING).

    Returns:
        MonthlyForecast. Empty input yields all-zero scenarios, confidence 0,
        currentROAS 0, goalStatus below, and no insights.
    """
    goal = monthly_goal if monthly_goal is not None else DEFAULT_MONTHLY_GOAL
    ceiling = budget_ceiling if budget_ceiling is not None else DEFAULT_BUDGET_CEILING
    days_remaining = days_remaining_in_month(as_of)

    if not records:
        return MonthlyForecast(
            scenarios=ForecastScenarios(),
            confidence=0.0,
            currentROAS=0.0,
            monthlyGoal=goal,
            goalStatus=GoalStatus.BELOW,
            goalPercentage=-100.0,
            daysRemaining=days_remaining,
            insights=[],
            asOf=as_of,
            historyDays=0,
        )

    daily = aggregate_daily(records)

    total_revenue = sum(day.revenue for day in daily)
    total_cost = sum(day.cost for day in daily)
    current_roas = total_revenue / total_cost if total_cost > 0 else 0.0

    revenue_series = [day.revenue for day in daily]
    realistic_revenue = linear_forecast(revenue_series, days_remaining)
    realistic_cost = linear_forecast([day.cost for day in daily], days_remaining)
    baseline = ForecastScenario(
        revenue=realistic_revenue,
        cost=realistic_cost,
        profit=realistic_revenue - realistic_cost,
        conversions=linear_forecast([day.conversions for day in daily], days_remaining),
        clicks=linear_forecast([day.clicks for day in daily], days_remaining),
        impressions=linear_forecast([day.impressions for day in daily], days_remaining),
    )
    scenarios = build_scenarios(baseline)

    confidence = apply_incomplete_penalty(calculate_confidence(revenue_series), daily)
    goal_status, goal_percentage = determine_goal_status(scenarios.realistic.revenue, goal)

    insights = generate_insights(InsightContext(
        records=list(records),
        daily_revenue=revenue_series,
        daily_cost=[day.cost for day in daily],
        current_roas=current_roas,
        projected_revenue=scenarios.realistic.revenue,
        days_remaining=days_remaining,
        budget_ceiling=ceiling,
    ))

    return MonthlyForecast(
        scenarios=scenarios,
        confidence=confidence,
        currentROAS=current_roas,
        monthlyGoal=goal,
        goalStatus=goal_status,
        goalPercentage=goal_percentage,
        daysRemaining=days_remaining,
        weeklyPattern=weekday_revenue_pattern(daily),
        insights=insights,
        asOf=as_of,
        historyDays=len(daily),
    )
