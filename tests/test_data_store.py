import json
import logging
from datetime import date, datetime, timezone

import pytest

from bizoptima.data_store import DataStore
from bizoptima.db import (
    BUSINESS_DATA_KEY,
    FINANCIAL_RECORDS_KEY,
    KPI_DATA_KEY,
    MemoryKeyValueStore,
)
from bizoptima.models import (
    FinancialRecord,
    Indicator,
    IndicatorUpdate,
    ProfileInput,
    RecordInput,
    RecordUpdate,
)


class FailingKeyValueStore(MemoryKeyValueStore):
    """Key-value store whose writes always fail (e.g. quota exceeded)."""

    def save(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")


def make_store(storage=None) -> DataStore:
    return DataStore(storage if storage is not None else MemoryKeyValueStore())


def record(day: str, revenue: float = 100.0) -> RecordInput:
    return RecordInput(
        date=day, revenue=revenue, expenses=60.0, profit=40.0, cash_flow=30.0
    )


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


def test_set_profile_applies_defaults_for_omitted_fields() -> None:
    """Omitted numbers read as 0 and omitted text as an empty string."""
    store = make_store()
    store.set_profile(ProfileInput(company_name="Acme", revenue=1000))

    profile = store.get_profile()
    assert profile is not None
    assert profile.company_name == "Acme"
    assert profile.industry == ""
    assert profile.employees == 0
    assert profile.revenue == 1000.0
    for attr in ("costs", "assets", "liabilities", "cash_flow"):
        assert getattr(profile, attr) == 0.0
    assert profile.id
    assert profile.created_at == profile.updated_at


def test_set_profile_without_any_data_creates_empty_profile() -> None:
    store = make_store()
    assert store.get_profile() is None

    profile = store.set_profile()

    assert profile.company_name == ""
    assert profile.revenue == 0.0


def test_replacing_profile_keeps_id_and_created_at() -> None:
    """id and created_at survive a replacement; updated_at is refreshed."""
    store = make_store()
    first = store.set_profile(ProfileInput(company_name="Acme"))

    second = store.set_profile(ProfileInput(company_name="Acme Corp", employees=12))

    assert second.id == first.id
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at
    assert second.company_name == "Acme Corp"
    assert second.employees == 12


def test_caller_supplied_id_and_created_at_take_precedence() -> None:
    store = make_store()
    store.set_profile(ProfileInput(company_name="Acme"))
    created = datetime(2023, 1, 1, tzinfo=timezone.utc)

    profile = store.set_profile(ProfileInput(id="custom-id", created_at=created))

    assert profile.id == "custom-id"
    assert profile.created_at == created
    assert profile.company_name == ""


# ---------------------------------------------------------------------------
# Financial records
# ---------------------------------------------------------------------------


def test_add_record_keeps_records_sorted_by_date() -> None:
    store = make_store()
    store.add_record(record("2024-03-01"))
    store.add_record(record("2024-01-01"))
    store.add_record(record("2024-02-01"))

    assert [r.date for r in store.get_records()] == [
        "2024-01-01",
        "2024-02-01",
        "2024-03-01",
    ]


def test_add_record_with_existing_date_replaces_it() -> None:
    """Same date -> replacement: length unchanged, order kept, latest values."""
    store = make_store()
    store.add_record(record("2024-01-01"))
    store.add_record(record("2024-02-01"))
    store.add_record(record("2024-03-01"))

    store.add_record(record("2024-02-01", revenue=999.0))

    records = store.get_records()
    assert len(records) == 3
    assert [r.date for r in records] == ["2024-01-01", "2024-02-01", "2024-03-01"]
    assert store.get_record("2024-02-01").revenue == 999.0


def test_add_record_without_date_uses_today() -> None:
    store = make_store()

    new_record = store.add_record(RecordInput(revenue=10.0))

    assert new_record.date == date.today().isoformat()
    assert store.get_records() == [new_record]


def test_update_record_merges_fields() -> None:
    store = make_store()
    store.add_record(record("2024-01-01"))

    store.update_record("2024-01-01", RecordUpdate(profit=55.5))

    assert store.get_record("2024-01-01") == FinancialRecord(
        date="2024-01-01",
        revenue=100.0,
        expenses=60.0,
        profit=55.5,
        cash_flow=30.0,
    )


def test_update_record_for_unknown_date_is_a_noop() -> None:
    storage = MemoryKeyValueStore()
    store = make_store(storage)
    store.add_record(record("2024-01-01"))
    writes_before = storage.writes

    store.update_record("2030-01-01", RecordUpdate(revenue=1.0))

    assert [r.date for r in store.get_records()] == ["2024-01-01"]
    assert storage.writes == writes_before


def test_update_record_can_move_a_record_to_another_date() -> None:
    store = make_store()
    store.add_record(record("2024-01-01", revenue=1.0))
    store.add_record(record("2024-02-01", revenue=2.0))
    store.add_record(record("2024-03-01", revenue=3.0))

    store.update_record("2024-03-01", RecordUpdate(date="2024-02-01"))

    records = store.get_records()
    assert [r.date for r in records] == ["2024-01-01", "2024-02-01"]
    assert records[1].revenue == 3.0


def test_update_record_ignores_empty_date() -> None:
    store = make_store()
    store.add_record(record("2024-01-01", revenue=1.0))

    store.update_record("2024-01-01", RecordUpdate(date="", revenue=5.0))

    assert [(r.date, r.revenue) for r in store.get_records()] == [("2024-01-01", 5.0)]


def test_delete_record_for_unknown_date_is_a_noop() -> None:
    store = make_store()
    store.add_record(record("2024-01-01"))
    store.add_record(record("2024-02-01"))
    before = store.get_records()

    store.delete_record("2030-01-01")

    assert store.get_records() == before


def test_delete_record_removes_matching_date() -> None:
    store = make_store()
    store.add_record(record("2024-01-01"))
    store.add_record(record("2024-02-01"))

    store.delete_record("2024-01-01")

    assert [r.date for r in store.get_records()] == ["2024-02-01"]


# ---------------------------------------------------------------------------
# Indicators
# ---------------------------------------------------------------------------


def test_add_indicator_with_same_metric_keeps_latest_values() -> None:
    store = make_store()
    store.add_indicator(Indicator("Market Share", 12, 15, "%", "growth"))
    store.add_indicator(Indicator("NPS", 40, 50, "", "customer"))
    store.add_indicator(Indicator("Market Share", 13, 16, "%", "growth"))

    indicators = store.get_indicators()
    market_share = [i for i in indicators if i.metric == "Market Share"]
    assert len(market_share) == 1
    assert market_share[0].value == 13
    assert market_share[0].target == 16
    # A replaced indicator moves to the end.
    assert [i.metric for i in indicators] == ["NPS", "Market Share"]


def test_set_indicators_replaces_collection() -> None:
    store = make_store()
    store.add_indicator(Indicator("Old", 1, 2, "", "financial"))

    store.set_indicators(
        [
            Indicator("MRR", 125000, 150000, "$", "financial"),
            Indicator("Churn", 5, 3, "%", "customer"),
            Indicator("MRR", 130000, 150000, "$", "financial"),
        ]
    )

    indicators = store.get_indicators()
    assert [i.metric for i in indicators] == ["Churn", "MRR"]
    assert store.get_indicator("MRR").value == 130000
    assert store.get_indicator("Old") is None


def test_update_indicator_merges_and_ignores_unknown_metric() -> None:
    store = make_store()
    store.add_indicator(Indicator("NPS", 40, 50, "", "customer"))

    store.update_indicator("NPS", IndicatorUpdate(value=45))
    store.update_indicator("Unknown", IndicatorUpdate(value=1))

    assert store.get_indicators() == [Indicator("NPS", 45, 50, "", "customer")]


def test_update_indicator_rename_rekeys_indicator() -> None:
    store = make_store()
    store.add_indicator(Indicator("NPS", 40, 50, "", "customer"))

    store.update_indicator("NPS", IndicatorUpdate(metric="Net Promoter Score"))

    assert store.get_indicator("NPS") is None
    assert store.get_indicator("Net Promoter Score").value == 40


def test_update_indicator_ignores_empty_metric_name() -> None:
    store = make_store()
    store.add_indicator(Indicator("NPS", 40, 50, "", "customer"))

    store.update_indicator("NPS", IndicatorUpdate(metric="", value=45))

    assert store.get_indicators() == [Indicator("NPS", 45, 50, "", "customer")]


def test_delete_indicator() -> None:
    store = make_store()
    store.add_indicator(Indicator("NPS", 40, 50, "", "customer"))
    store.add_indicator(Indicator("MRR", 1, 2, "$", "financial"))

    store.delete_indicator("NPS")
    store.delete_indicator("does not exist")

    assert [i.metric for i in store.get_indicators()] == ["MRR"]


def test_unknown_category_falls_back_to_operational(caplog) -> None:
    store = make_store()

    with caplog.at_level(logging.WARNING, logger="bizoptima.data_store"):
        stored = store.add_indicator(Indicator("Uptime", 99, 99.9, "%", "infra"))

    assert stored.category == "operational"
    assert "Unknown category" in caplog.text


# ---------------------------------------------------------------------------
# Whole store & persistence
# ---------------------------------------------------------------------------


def test_clear_all_empties_every_entity_kind() -> None:
    storage = MemoryKeyValueStore()
    store = make_store(storage)
    store.set_profile(ProfileInput(company_name="Acme"))
    store.add_record(record("2024-01-01"))
    store.add_indicator(Indicator("NPS", 40, 50, "", "customer"))

    store.clear_all()

    assert store.get_profile() is None
    assert store.get_records() == []
    assert store.get_indicators() == []
    assert store.get_derived_metrics() is None

    # The empty state is persisted as well.
    assert json.loads(storage.data[BUSINESS_DATA_KEY]) is None
    reloaded = make_store(storage)
    assert reloaded.get_profile() is None
    assert reloaded.get_records() == []
    assert reloaded.get_indicators() == []


def test_every_mutation_writes_the_three_keys() -> None:
    storage = MemoryKeyValueStore()
    store = make_store(storage)

    store.add_record(record("2024-01-01"))

    assert set(storage.data) == {BUSINESS_DATA_KEY, FINANCIAL_RECORDS_KEY, KPI_DATA_KEY}
    assert storage.writes == 3
    assert json.loads(storage.data[FINANCIAL_RECORDS_KEY]) == [
        {
            "date": "2024-01-01",
            "revenue": 100.0,
            "expenses": 60.0,
            "profit": 40.0,
            "cashFlow": 30.0,
        }
    ]


def test_state_is_reloaded_by_a_new_store() -> None:
    storage = MemoryKeyValueStore()
    store = make_store(storage)
    profile = store.set_profile(ProfileInput(company_name="Acme", revenue=1000))
    store.add_record(record("2024-02-01"))
    store.add_record(record("2024-01-01"))
    store.add_indicator(Indicator("NPS", 40, 50, "", "customer"))

    reloaded = make_store(storage)

    assert reloaded.get_profile() == profile
    assert reloaded.get_records() == store.get_records()
    assert reloaded.get_indicators() == store.get_indicators()


def test_corrupt_snapshot_only_resets_its_own_kind(caplog) -> None:
    """A parse failure on one key must not prevent loading the others."""
    storage = MemoryKeyValueStore()
    store = make_store(storage)
    store.set_profile(ProfileInput(company_name="Acme"))
    store.add_indicator(Indicator("NPS", 40, 50, "", "customer"))
    storage.data[FINANCIAL_RECORDS_KEY] = "{not json"

    with caplog.at_level(logging.ERROR, logger="bizoptima.data_store"):
        reloaded = make_store(storage)

    assert reloaded.get_profile().company_name == "Acme"
    assert reloaded.get_records() == []
    assert [i.metric for i in reloaded.get_indicators()] == ["NPS"]
    assert "Failed to load financial records" in caplog.text


def test_snapshot_written_by_the_dashboard_is_readable() -> None:
    """camelCase JSON with 'Z' timestamps, as written by the web front-end."""
    storage = MemoryKeyValueStore(
        {
            BUSINESS_DATA_KEY: json.dumps(
                {
                    "id": "lq2x9k1abc",
                    "companyName": "Example Corp",
                    "industry": "Technology/Software",
                    "employees": 50,
                    "revenue": 1500000,
                    "costs": 1200000,
                    "assets": 2000000,
                    "liabilities": 800000,
                    "cashFlow": 150000,
                    "createdAt": "2024-06-01T10:00:00.000Z",
                    "updatedAt": "2024-06-02T10:00:00.000Z",
                }
            ),
        }
    )

    store = make_store(storage)

    profile = store.get_profile()
    assert profile.id == "lq2x9k1abc"
    assert profile.cash_flow == 150000.0
    assert profile.created_at == datetime(2024, 6, 1, 10, tzinfo=timezone.utc)
    assert store.get_records() == []


def test_save_failure_is_logged_and_keeps_memory_state(caplog) -> None:
    store = make_store(FailingKeyValueStore())

    with caplog.at_level(logging.ERROR, logger="bizoptima.data_store"):
        store.add_record(record("2024-01-01"))

    assert [r.date for r in store.get_records()] == ["2024-01-01"]
    assert "Failed to save data to storage" in caplog.text


def test_derived_metrics_scenario() -> None:
    store = make_store()
    store.set_profile(
        ProfileInput(
            company_name="Acme",
            revenue=1000,
            costs=600,
            assets=5000,
            liabilities=2000,
        )
    )

    metrics = store.get_derived_metrics()

    assert metrics.gross_profit == pytest.approx(400)
    assert metrics.net_profit == pytest.approx(400)
    assert metrics.equity == pytest.approx(3000)
