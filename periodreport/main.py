import logging
import os
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from periodreport.chart_aggregator import InvalidAmountFormat
from periodreport.chart_cache import ChartCache
from periodreport.chart_generator import multi_currency_pie_chart
from periodreport.period_engine import (
    InvalidRangeCode,
    Period,
    PeriodOutOfRange,
    RangeCode,
    parse_range_code,
    resolve_navigation,
)
from periodreport.transaction_charts import (
    ChartDimension,
    InvalidObjectType,
    JournalEntry,
    build_dimension_chart,
    transaction_types_for,
)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


class JournalCollector(Protocol):
    def collect(
        self,
        start: date,
        end: date,
        transaction_types: Sequence[str],
    ) -> Iterable[JournalEntry]:
        ...


def get_default_view_range() -> RangeCode:
    return parse_range_code(os.getenv("DEFAULT_VIEW_RANGE", "1M"))


def get_chart_cache_ttl() -> float:
    raw = os.getenv("CHART_CACHE_TTL_SECONDS", "300")
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"CHART_CACHE_TTL_SECONDS must be a number, got {raw!r}.") from exc


class PeriodResponse(BaseModel):
    start: date
    end: date
    label: str


class PeriodNavigationResponse(BaseModel):
    range: str
    current: PeriodResponse
    previous: PeriodResponse
    next: PeriodResponse


class ChartDataset(BaseModel):
    data: list[Decimal]
    backgroundColor: list[str]
    currency_symbol: list[str]


class ChartResponse(BaseModel):
    labels: list[str]
    datasets: list[ChartDataset]


def to_period_response(period: Period) -> PeriodResponse:
    return PeriodResponse(start=period.start, end=period.end, label=period.label)


def create_app(
    collector: JournalCollector,
    cache: Optional[ChartCache] = None,
) -> FastAPI:
    default_range = get_default_view_range()
    if cache is None:
        cache = ChartCache(ttl_seconds=get_chart_cache_ttl())

    app = FastAPI()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def build_chart(
        dimension: ChartDimension,
        start: date,
        end: date,
        object_type: Optional[str] = None,
    ) -> ChartResponse:
        if start > end:
            raise HTTPException(status_code=400, detail="start must be on or before end.")
        try:
            transaction_types = transaction_types_for(dimension, object_type)
        except InvalidObjectType as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        def compute() -> dict:
            journals = collector.collect(start, end, transaction_types)
            result = build_dimension_chart(journals, dimension, transaction_types)
            logger.debug("Built %s with %d buckets", dimension.chart_name, len(result))
            return multi_currency_pie_chart(result)

        normalized_object_type = object_type.strip().lower() if object_type else ""
        cache_key = (start, end, normalized_object_type, dimension.chart_name)
        try:
            payload = cache.get_or_compute(cache_key, compute)
        except InvalidAmountFormat as exc:
            logger.exception("Failed to build %s for %s - %s", dimension.chart_name, start, end)
            raise HTTPException(status_code=500, detail="Failed to build chart.") from exc
        return ChartResponse(**payload)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/periods", response_model=PeriodNavigationResponse)
    def periods(
        range_code: Optional[str] = Query(None, alias="range"),
        anchor: Optional[date] = Query(None),
    ) -> PeriodNavigationResponse:
        try:
            code = parse_range_code(range_code) if range_code is not None else default_range
        except InvalidRangeCode as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        try:
            navigation = resolve_navigation(code, anchor or date.today())
        except PeriodOutOfRange as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return PeriodNavigationResponse(
            range=navigation.range.value,
            current=to_period_response(navigation.current),
            previous=to_period_response(navigation.previous),
            next=to_period_response(navigation.next),
        )

    @app.get("/chart/transactions/budgets/{start}/{end}", response_model=ChartResponse)
    def budgets_chart(start: date, end: date) -> ChartResponse:
        return build_chart(ChartDimension.BUDGET, start, end)

    @app.get(
        "/chart/transactions/categories/{object_type}/{start}/{end}",
        response_model=ChartResponse,
    )
    def categories_chart(object_type: str, start: date, end: date) -> ChartResponse:
        return build_chart(ChartDimension.CATEGORY, start, end, object_type)

    @app.get(
        "/chart/transactions/sources/{object_type}/{start}/{end}",
        response_model=ChartResponse,
    )
    def sources_chart(object_type: str, start: date, end: date) -> ChartResponse:
        return build_chart(ChartDimension.SOURCE, start, end, object_type)

    @app.get(
        "/chart/transactions/destinations/{object_type}/{start}/{end}",
        response_model=ChartResponse,
    )
    def destinations_chart(object_type: str, start: date, end: date) -> ChartResponse:
        return build_chart(ChartDimension.DESTINATION, start, end, object_type)

    return app
