from __future__ import annotations

from collections import OrderedDict
from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional

ZERO = Decimal("0")


class InvalidAmountFormat(ValueError):
    """Raised when a transaction amount is not an exact decimal number."""


@dataclass(frozen=True)
class TransactionRecord:
    primary_amount: Decimal | str
    primary_currency_symbol: str
    secondary_amount: Optional[Decimal | str] = None
    secondary_currency_symbol: Optional[str] = None
    dimension_label: Optional[str] = None


@dataclass(frozen=True)
class Bucket:
    title: str
    amount: Decimal
    currency_symbol: str


class AggregationResult(Mapping):
    """Buckets keyed by title, in the order the titles were first seen."""

    def __init__(self, buckets: Iterable[Bucket] = ()) -> None:
        self._buckets: OrderedDict[str, Bucket] = OrderedDict(
            (bucket.title, bucket) for bucket in buckets
        )

    def __getitem__(self, title: str) -> Bucket:
        return self._buckets[title]

    def __iter__(self) -> Iterator[str]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __repr__(self) -> str:
        return f"AggregationResult({list(self._buckets.values())!r})"

    def buckets(self) -> list[Bucket]:
        return list(self._buckets.values())

    def to_chart_data(self) -> Dict[str, Dict[str, object]]:
        return {
            title: {"amount": bucket.amount, "currency_symbol": bucket.currency_symbol}
            for title, bucket in self._buckets.items()
        }


def aggregate(
    records: Iterable[TransactionRecord],
    default_label: str,
) -> AggregationResult:
    """Sum record amounts per (dimension label, currency) bucket.

    A record with a secondary amount also feeds the bucket titled with the
    secondary currency. That bucket is tagged with the record's primary
    currency symbol, which is what existing chart consumers expect.
    """
    buckets: OrderedDict[str, Bucket] = OrderedDict()
    for record in records:
        label = record.dimension_label if record.dimension_label is not None else default_label
        primary_amount = _coerce_amount(record.primary_amount)
        title = _bucket_title(label, record.primary_currency_symbol)
        bucket = buckets.get(title)
        if bucket is None:
            bucket = Bucket(
                title=title,
                amount=ZERO,
                currency_symbol=record.primary_currency_symbol,
            )
        buckets[title] = replace(bucket, amount=bucket.amount + primary_amount)

        if record.secondary_amount is None:
            continue
        secondary_amount = _coerce_amount(record.secondary_amount)
        if not record.secondary_currency_symbol:
            raise InvalidAmountFormat(
                f"Secondary amount {record.secondary_amount!r} has no currency symbol."
            )
        title = _bucket_title(label, record.secondary_currency_symbol)
        bucket = buckets.get(title)
        if bucket is None:
            buckets[title] = Bucket(
                title=title,
                amount=secondary_amount,
                currency_symbol=record.primary_currency_symbol,
            )
        else:
            buckets[title] = replace(bucket, amount=bucket.amount + secondary_amount)

    return AggregationResult(buckets.values())


def _bucket_title(label: str, currency_symbol: str) -> str:
    return f"{label} ({currency_symbol})"


def _coerce_amount(amount: Decimal | str) -> Decimal:
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, str):
        try:
            value = Decimal(amount.strip())
        except InvalidOperation as exc:
            raise InvalidAmountFormat(f"Invalid amount: {amount!r}") from exc
    else:
        raise InvalidAmountFormat(f"Amounts must be Decimal or str, got {type(amount).__name__}.")
    if not value.is_finite():
        raise InvalidAmountFormat(f"Invalid amount: {amount!r}")
    return value
