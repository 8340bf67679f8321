from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Collection, Iterable, List, Optional

from periodreport.chart_aggregator import AggregationResult, TransactionRecord, aggregate

WITHDRAWAL = "withdrawal"
DEPOSIT = "deposit"
TRANSFER = "transfer"


class InvalidObjectType(ValueError):
    """Raised when a chart is requested for an unknown kind of transaction."""


@dataclass(frozen=True)
class JournalEntry:
    transaction_type: str
    amount: Decimal | str
    currency_symbol: str
    foreign_amount: Optional[Decimal | str] = None
    foreign_currency_symbol: Optional[str] = None
    budget_name: Optional[str] = None
    category_name: Optional[str] = None
    source_account_name: Optional[str] = None
    destination_account_name: Optional[str] = None


class ChartDimension(Enum):
    BUDGET = ("budget_name", "(no budget)", "chart.transactions.budgets")
    CATEGORY = ("category_name", "(no category)", "chart.transactions.categories")
    SOURCE = ("source_account_name", "(no source account)", "chart.transactions.sources")
    DESTINATION = (
        "destination_account_name",
        "(no destination account)",
        "chart.transactions.destinations",
    )

    def __init__(self, field_name: str, default_label: str, chart_name: str) -> None:
        self.field_name = field_name
        self.default_label = default_label
        self.chart_name = chart_name

    def label_of(self, journal: JournalEntry) -> Optional[str]:
        return getattr(journal, self.field_name)


class ObjectType(str, Enum):
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"
    TRANSFERS = "transfers"

    @property
    def transaction_types(self) -> tuple[str, ...]:
        return OBJECT_TYPE_TRANSACTIONS[self]

    @classmethod
    def parse(cls, value: ObjectType | str) -> ObjectType:
        if isinstance(value, ObjectType):
            return value
        normalized = str(value).strip().lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            raise InvalidObjectType(f"Cannot handle object type {value!r}.") from exc


OBJECT_TYPE_TRANSACTIONS = {
    ObjectType.WITHDRAWAL: (WITHDRAWAL,),
    ObjectType.DEPOSIT: (DEPOSIT,),
    ObjectType.TRANSFERS: (TRANSFER,),
}

# Budgets only apply to money going out.
BUDGET_TRANSACTION_TYPES = (WITHDRAWAL,)


def to_records(
    journals: Iterable[JournalEntry],
    dimension: ChartDimension,
) -> List[TransactionRecord]:
    return [
        TransactionRecord(
            primary_amount=journal.amount,
            primary_currency_symbol=journal.currency_symbol,
            secondary_amount=journal.foreign_amount,
            secondary_currency_symbol=journal.foreign_currency_symbol,
            dimension_label=dimension.label_of(journal),
        )
        for journal in journals
    ]


def build_dimension_chart(
    journals: Iterable[JournalEntry],
    dimension: ChartDimension,
    transaction_types: Optional[Collection[str]] = None,
) -> AggregationResult:
    """Aggregate ``journals`` along ``dimension``.

    When ``transaction_types`` is given, journals of other types are dropped
    here as well. Collectors are supplied by the host application and a chart
    must never mix withdrawals into a deposit chart if one ignores its filter.
    """
    if transaction_types is not None:
        allowed = {_normalize_type(value) for value in transaction_types}
        journals = [
            journal
            for journal in journals
            if _normalize_type(journal.transaction_type) in allowed
        ]
    return aggregate(to_records(journals, dimension), dimension.default_label)


def transaction_types_for(
    dimension: ChartDimension,
    object_type: Optional[ObjectType | str] = None,
) -> tuple[str, ...]:
    if dimension is ChartDimension.BUDGET:
        return BUDGET_TRANSACTION_TYPES
    if object_type is None:
        raise InvalidObjectType(f"{dimension.name.lower()} charts require an object type.")
    return ObjectType.parse(object_type).transaction_types


def _normalize_type(value: str) -> str:
    return value.strip().lower()
