"""
Rule-Based Insight Generation.

Turns the numbers behind a MonthlyForecast into short, typed
recommendations for the dashboard insights card. Each rule is a pure
function of an InsightContext that returns one Insight or None; every rule
that fires contributes exactly one insight, in INSIGHT_RULES order.

Rules:
    1. ROAS         current ROAS > 3.0              -> prediction (87)
    2. TREND        trailing-7 vs prior-7 revenue
                    >= +15%                         -> opportunity (82)
                    <= -15%                         -> warning (78)
    3. BUDGET       avg daily cost x days remaining
                    > budget ceiling                -> warning (75)
    4. TOP CAMPAIGN best per-campaign ROAS > 4.0    -> opportunity (85)

Usage:
    from pulse.services.insights import InsightContext, generate_insights

    insights = generate_insights(context)
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from pulse.models.enums import InsightType
from pulse.models.schemas import Insight, MetricRecord


# =============================================================================
# Constants
# =============================================================================

ROAS_THRESHOLD: float = 3.0
ROAS_CONFIDENCE: float = 87.0

TREND_WINDOW_DAYS: int = 7
TREND_CHANGE_PCT: float = 15.0
TREND_UP_CONFIDENCE: float = 82.0
TREND_DOWN_CONFIDENCE: float = 78.0

DEFAULT_BUDGET_CEILING: float = 10000.0
BUDGET_CONFIDENCE: float = 75.0

TOP_CAMPAIGN_ROAS_THRESHOLD: float = 4.0
TOP_CAMPAIGN_CONFIDENCE: float = 85.0


@dataclass
class InsightContext:
    """
    Inputs shared by every insight rule.

    Attributes:
        records: Raw campaign records (used for per-campaign ROAS).
        daily_revenue: Total revenue per day, ascending date.
        daily_cost: Total cost per day, ascending date.
        current_roas: Total revenue / total cost over the history.
        projected_revenue: Realistic-scenario month-end revenue.
        days_remaining: Days left in the month (>= 1).
        budget_ceiling: Projected-cost ceiling for the month.
    """
    records: List[MetricRecord] = field(default_factory=list)
    daily_revenue: List[float] = field(default_factory=list)
    daily_cost: List[float] = field(default_factory=list)
    current_roas: float = 0.0
    projected_revenue: float = 0.0
    days_remaining: int = 1
    budget_ceiling: float = DEFAULT_BUDGET_CEILING


InsightRule = Callable[[InsightContext], Optional[Insight]]


def _format_amount(amount: float) -> str:
    return f"{amount:,.2f}"


# =============================================================================
# Rules
# =============================================================================


def roas_rule(context: InsightContext) -> Optional[Insight]:
    """Healthy overall ROAS: predict the month-end revenue."""
    if context.current_roas <= ROAS_THRESHOLD:
        return None
    return Insight(
        type=InsightType.PREDICTION,
        message=(
            f"ROAS of {context.current_roas:.2f} is above {ROAS_THRESHOLD:.1f}; "
            f"expected month-end revenue is {_format_amount(context.projected_revenue)}"
        ),
        confidence=ROAS_CONFIDENCE,
    )


def trend_rule(context: InsightContext) -> Optional[Insight]:
    """
    Compare average daily revenue of the last 7 days with the 7 days before.

    Needs at least one day in each window and a positive prior average.
    """
    revenue = context.daily_revenue
    recent = revenue[-TREND_WINDOW_DAYS:]
    prior = revenue[-2 * TREND_WINDOW_DAYS:-TREND_WINDOW_DAYS]
    if not recent or not prior:
        return None

    prior_avg = float(np.mean(prior))
    if prior_avg <= 0:
        return None

    change_pct = (float(np.mean(recent)) / prior_avg - 1.0) * 100.0
    if change_pct >= TREND_CHANGE_PCT:
        return Insight(
            type=InsightType.OPPORTUNITY,
            message=f"Daily revenue is up {change_pct:.1f}% over the previous week",
            confidence=TREND_UP_CONFIDENCE,
            action="maintain strategy",
        )
    if change_pct <= -TREND_CHANGE_PCT:
        return Insight(
            type=InsightType.WARNING,
            message=f"Daily revenue is down {abs(change_pct):.1f}% from the previous week",
            confidence=TREND_DOWN_CONFIDENCE,
            action="review campaigns",
        )
    return None


def budget_rule(context: InsightContext) -> Optional[Insight]:
    """Average daily cost carried to month end would exceed the ceiling."""
    if not context.daily_cost:
        return None
    projected_cost = float(np.mean(context.daily_cost)) * context.days_remaining
    if projected_cost <= context.budget_ceiling:
        return None
    return Insight(
        type=InsightType.WARNING,
        message=(
            f"Projected cost of {_format_amount(projected_cost)} may exceed the "
            f"monthly budget of {_format_amount(context.budget_ceiling)}"
        ),
        confidence=BUDGET_CONFIDENCE,
        action="adjust budgets",
    )


def best_campaign(records: List[MetricRecord]) -> Optional[Tuple[str, float]]:
    """
    Campaign with the highest aggregated ROAS.

    Only campaigns with positive total cost and positive total revenue are
    ranked. Ties keep the campaign seen first.

    Returns:
        (campaign label, roas), or None when no campaign qualifies.
    """
    totals: Dict[str, List[float]] = {}
    labels: Dict[str, str] = {}
    for record in records:
        cost_revenue = totals.setdefault(record.campaignId, [0.0, 0.0])
        cost_revenue[0] += record.cost
        cost_revenue[1] += record.revenue
        if record.campaignName:
            labels[record.campaignId] = record.campaignName

    best: Optional[Tuple[str, float]] = None
    for campaign_id, (cost, revenue) in totals.items():
        if cost <= 0 or revenue <= 0:
            continue
        roas = revenue / cost
        if best is None or roas > best[1]:
            best = (labels.get(campaign_id, campaign_id), roas)
    return best


def top_campaign_rule(context: InsightContext) -> Optional[Insight]:
    """A single campaign returning more than 4x its cost deserves more budget."""
    best = best_campaign(context.records)
    if best is None:
        return None
    label, roas = best
    if roas <= TOP_CAMPAIGN_ROAS_THRESHOLD:
        return None
    return Insight(
        type=InsightType.OPPORTUNITY,
        message=f"Campaign '{label}' has ROAS {roas:.2f}; consider scaling its budget",
        confidence=TOP_CAMPAIGN_CONFIDENCE,
        action="scale budget",
    )


INSIGHT_RULES: List[InsightRule] = [
    roas_rule,
    trend_rule,
    budget_rule,
    top_campaign_rule,
]


# =============================================================================
# Main Entry Point
# =============================================================================


def generate_insights(context: InsightContext) -> List[Insight]:
    """Evaluate every rule and collect the insights that fired."""
    insights: List[Insight] = []
    for rule in INSIGHT_RULES:
        insight = rule(context)
        if insight is not None:
            insights.append(insight)
    return insights
