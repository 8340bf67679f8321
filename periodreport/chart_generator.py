from __future__ import annotations

from decimal import Decimal
from typing import Dict, List

from periodreport.chart_aggregator import AggregationResult

CHART_COLOURS = (
    (53, 124, 165),
    (0, 141, 76),
    (219, 139, 11),
    (202, 25, 90),
    (85, 82, 153),
    (66, 133, 244),
    (219, 68, 55),
    (244, 180, 0),
    (15, 157, 88),
    (171, 71, 188),
    (0, 172, 193),
    (255, 112, 67),
    (158, 157, 36),
    (92, 107, 192),
    (240, 98, 146),
    (0, 121, 107),
    (194, 24, 91),
)


def chart_colour(index: int) -> str:
    red, green, blue = CHART_COLOURS[index % len(CHART_COLOURS)]
    return f"rgba({red}, {green}, {blue}, 0.7)"


def multi_currency_pie_chart(result: AggregationResult) -> Dict[str, List]:
    """Build pie chart data, one slice per bucket, largest slice first.

    Amounts are shown as positive values; the currency of each slice travels
    alongside in ``currency_symbol``.
    """
    buckets = sorted(result.buckets(), key=lambda bucket: abs(bucket.amount), reverse=True)
    data: List[Decimal] = []
    colours: List[str] = []
    symbols: List[str] = []
    labels: List[str] = []
    for index, bucket in enumerate(buckets):
        data.append(abs(bucket.amount))
        colours.append(chart_colour(index))
        symbols.append(bucket.currency_symbol)
        labels.append(bucket.title)
    return {
        "labels": labels,
        "datasets": [
            {
                "data": data,
                "backgroundColor": colours,
                "currency_symbol": symbols,
            }
        ],
    }
