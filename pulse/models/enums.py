"""
Enumeration definitions for the Campaign Pulse backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, enabling automatic serialization and
deserialization in API responses.
"""

from enum import Enum


class Currency(str, Enum):
    """
    Currencies campaign records can be reported in.

    Google Ads accounts report in either Brazilian reais or US dollars; the
    dashboard shows everything in one display currency.
    """
    BRL = "BRL"
    USD = "USD"


class InsightType(str, Enum):
    """
    Category of a generated insight.

    - opportunity: Positive signal worth acting on (scale, maintain)
    - warning: Something is trending toward a missed goal or overspend
    - prediction: Statement about expected month-end results
    - recommendation: General suggestion without a specific trigger
    """
    OPPORTUNITY = "opportunity"
    WARNING = "warning"
    PREDICTION = "prediction"
    RECOMMENDATION = "recommendation"


class GoalStatus(str, Enum):
    """
    Realistic month-end revenue relative to the monthly goal.

    - above: at least 10% over the goal
    - below: at least 10% under the goal
    - ontrack: within 10% either way
    """
    ABOVE = "above"
    BELOW = "below"
    ONTRACK = "ontrack"


class ScenarioName(str, Enum):
    """The four forecast variants derived from the same baseline projection."""
    OPTIMISTIC = "optimistic"
    REALISTIC = "realistic"
    CONSERVATIVE = "conservative"
    PESSIMISTIC = "pessimistic"


class NumberFormat(str, Enum):
    """
    Grammar tag assigned to a numeric token by the number parser.

    Tags are tried in declaration order (first match wins), except
    UNRECOGNIZED which is the result when nothing matches:

    - thousands_br: 2.000 / 15.000 (dot as thousands separator, no decimals)
    - thousands_intl: 2,000 / 15,000 (comma as thousands separator, no decimals)
    - brazilian: 1.234,56 / 780,00 (comma as decimal separator)
    - international: 1,234.56 / 780.00 (dot as decimal separator)
    - plain: 123 / -45
    """
    THOUSANDS_BR = "thousands_br"
    THOUSANDS_INTL = "thousands_intl"
    BRAZILIAN = "brazilian"
    INTERNATIONAL = "international"
    PLAIN = "plain"
    UNRECOGNIZED = "unrecognized"


class DetectorState(str, Enum):
    """
    Lifecycle state of the rollover detector.

    - idle: Waiting for the next scheduled check
    - checking: Inside a date comparison (re-entrant checks are ignored)
    - stopped: Not started yet, or disposed; no timer is pending
    """
    IDLE = "idle"
    CHECKING = "checking"
    STOPPED = "stopped"
