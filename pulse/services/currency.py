"""
Currency normalization for campaign amounts.

Campaign accounts may report in BRL or USD. Before aggregation every record
is put in the display currency so cost and revenue can be summed; counts
(impressions, clicks, conversions) are never converted.

The exchange rate is expressed as BRL per 1 USD. When no usable rate is
configured amounts pass through unchanged and the record keeps its original
currency tag.
"""

import logging
from typing import List, Optional, Sequence

from pulse.models import Currency, MetricRecord


logger = logging.getLogger(__name__)


def convert_amount(
    amount: float,
    from_currency: Currency,
    to_currency: Currency,
    rate: Optional[float],
) -> float:
    """
    Convert an amount between BRL and USD.

    Args:
        amount: Value in from_currency.
        from_currency: Currency the amount is expressed in.
        to_currency: Target currency.
        rate: BRL per 1 USD.

    Returns:
        The converted amount. Same currency, or a missing/non-positive rate,
        returns the amount unchanged.
    """
    if from_currency == to_currency or rate is None or rate <= 0:
        return amount
    if from_currency == Currency.USD and to_currency == Currency.BRL:
        return amount * rate
    return amount / rate


def normalize_records(
    records: Sequence[MetricRecord],
    display_currency: Currency,
    rate: Optional[float],
) -> List[MetricRecord]:
    """Return copies of records with cost and revenue in display_currency."""
    if rate is None or rate <= 0:
        foreign = sum(1 for record in records if record.currency != display_currency)
        if foreign:
            logger.warning(
                f"{foreign} records are not in {display_currency.value} and no exchange rate is set; "
                f"amounts left unconverted"
            )
        return list(records)

    normalized: List[MetricRecord] = []
    for record in records:
        if record.currency == display_currency:
            normalized.append(record)
            continue
        normalized.append(record.model_copy(update={
            'cost': convert_amount(record.cost, record.currency, display_currency, rate),
            'revenue': convert_amount(record.revenue, record.currency, display_currency, rate),
            'currency': display_currency,
        }))
    return normalized
