import os
import unittest
from datetime import date
from unittest import mock

from fastapi.testclient import TestClient

from periodreport.chart_cache import ChartCache
from periodreport.main import create_app
from periodreport.period_engine import InvalidRangeCode
from periodreport.transaction_charts import JournalEntry


class FakeCollector:
    """Returns every journal, whatever transaction types are requested."""

    def __init__(self, journals: list[JournalEntry]) -> None:
        self.journals = journals
        self.calls = []

    def collect(self, start: date, end: date, transaction_types) -> list[JournalEntry]:
        self.calls.append((start, end, tuple(transaction_types)))
        return self.journals


JOURNALS = [
    JournalEntry(
        transaction_type="withdrawal",
        amount="10.00",
        currency_symbol="USD",
        budget_name="Groceries",
        category_name="Food",
        source_account_name="Checking",
        destination_account_name="Market",
    ),
    JournalEntry(
        transaction_type="withdrawal",
        amount="10.00",
        currency_symbol="USD",
        foreign_amount="9.50",
        foreign_currency_symbol="EUR",
        budget_name="Groceries",
        category_name="Food",
        source_account_name="Checking",
        destination_account_name="Market",
    ),
    JournalEntry(
        transaction_type="deposit",
        amount="100.00",
        currency_symbol="USD",
        category_name="Salary",
        source_account_name="Employer",
        destination_account_name="Checking",
    ),
]


class AppTests(unittest.TestCase):
    def setUp(self) -> None:
        self.collector = FakeCollector(JOURNALS)
        with mock.patch.dict(os.environ, {"DEFAULT_VIEW_RANGE": "1M"}):
            app = create_app(self.collector, cache=ChartCache(ttl_seconds=60))
        self.client = TestClient(app)

    def test_health(self) -> None:
        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_periods_for_quarter(self) -> None:
        response = self.client.get("/periods", params={"range": "3M", "anchor": "2024-05-15"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["range"], "3M")
        self.assertEqual(
            body["current"],
            {"start": "2024-04-01", "end": "2024-06-30", "label": "Q2 2024"},
        )
        self.assertEqual(body["previous"]["label"], "Q1 2024")
        self.assertEqual(body["next"]["label"], "Q3 2024")

    def test_periods_use_default_range(self) -> None:
        response = self.client.get("/periods", params={"anchor": "2024-02-10"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["range"], "1M")
        self.assertEqual(response.json()["current"]["label"], "February 2024")

    def test_periods_reject_unknown_range(self) -> None:
        response = self.client.get("/periods", params={"range": "2W"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("Unsupported range", response.json()["detail"])

    def test_periods_at_end_of_calendar(self) -> None:
        response = self.client.get("/periods", params={"range": "1Y", "anchor": "9999-06-01"})

        self.assertEqual(response.status_code, 400)
        self.assertIn("9999-06-01", response.json()["detail"])

    def test_budget_chart(self) -> None:
        response = self.client.get("/chart/transactions/budgets/2024-01-01/2024-01-31")

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["labels"], ["Groceries (USD)", "Groceries (EUR)"])
        dataset = body["datasets"][0]
        self.assertEqual([float(value) for value in dataset["data"]], [20.0, 9.5])
        self.assertEqual(dataset["currency_symbol"], ["USD", "USD"])
        self.assertEqual(
            self.collector.calls,
            [(date(2024, 1, 1), date(2024, 1, 31), ("withdrawal",))],
        )

    def test_category_chart_for_deposits(self) -> None:
        response = self.client.get("/chart/transactions/categories/deposit/2024-01-01/2024-01-31")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["labels"], ["Salary (USD)"])

    def test_source_and_destination_charts(self) -> None:
        sources = self.client.get("/chart/transactions/sources/withdrawal/2024-01-01/2024-01-31")
        destinations = self.client.get(
            "/chart/transactions/destinations/deposit/2024-01-01/2024-01-31"
        )

        self.assertEqual(sources.json()["labels"], ["Checking (USD)", "Checking (EUR)"])
        self.assertEqual(destinations.json()["labels"], ["Checking (USD)"])

    def test_chart_results_are_cached(self) -> None:
        path = "/chart/transactions/categories/withdrawal/2024-01-01/2024-01-31"

        self.client.get(path)
        self.client.get(path)

        self.assertEqual(len(self.collector.calls), 1)

    def test_unknown_object_type(self) -> None:
        response = self.client.get("/chart/transactions/categories/refund/2024-01-01/2024-01-31")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.collector.calls, [])

    def test_reversed_range_is_rejected(self) -> None:
        response = self.client.get("/chart/transactions/budgets/2024-02-01/2024-01-01")

        self.assertEqual(response.status_code, 400)

    def test_malformed_amount_fails_chart(self) -> None:
        collector = FakeCollector(
            [
                JournalEntry(
                    transaction_type="withdrawal",
                    amount="not-a-number",
                    currency_symbol="USD",
                )
            ]
        )
        with mock.patch.dict(os.environ, {"DEFAULT_VIEW_RANGE": "1M"}):
            client = TestClient(create_app(collector, cache=ChartCache()))

        response = client.get("/chart/transactions/budgets/2024-01-01/2024-01-31")

        self.assertEqual(response.status_code, 500)


class ConfigurationTests(unittest.TestCase):
    def test_invalid_default_range_is_fatal(self) -> None:
        with mock.patch.dict(os.environ, {"DEFAULT_VIEW_RANGE": "fortnight"}):
            with self.assertRaises(InvalidRangeCode):
                create_app(FakeCollector([]))

    def test_configured_default_range(self) -> None:
        with mock.patch.dict(os.environ, {"DEFAULT_VIEW_RANGE": "1Y"}):
            client = TestClient(create_app(FakeCollector([])))

        response = client.get("/periods", params={"anchor": "2024-06-01"})

        self.assertEqual(response.json()["current"]["label"], "2024")


if __name__ == "__main__":
    unittest.main()
