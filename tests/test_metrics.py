from datetime import datetime, timezone

import pytest

from bizoptima.metrics import compute_derived_metrics, metrics_to_dataframe
from bizoptima.models import Profile


def make_profile(**overrides) -> Profile:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    values = {
        "id": "p1",
        "company_name": "Acme",
        "industry": "Retail",
        "employees": 10,
        "revenue": 1000.0,
        "costs": 600.0,
        "assets": 5000.0,
        "liabilities": 2000.0,
        "cash_flow": 150.0,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Profile(**values)


def test_no_profile_means_no_metrics() -> None:
    assert compute_derived_metrics(None) is None


def test_compute_derived_metrics() -> None:
    """gross = revenue - costs, net = gross, equity = assets - liabilities."""
    metrics = compute_derived_metrics(make_profile())

    assert metrics.gross_profit == pytest.approx(400.0)
    assert metrics.net_profit == pytest.approx(400.0)
    assert metrics.equity == pytest.approx(3000.0)

    # Pass-through values
    assert metrics.revenue == 1000.0
    assert metrics.costs == 600.0
    assert metrics.expenses == 600.0
    assert metrics.cash_flow == 150.0


def test_zero_liabilities_and_losses_are_plain_subtractions() -> None:
    metrics = compute_derived_metrics(
        make_profile(revenue=100.0, costs=250.0, liabilities=0.0)
    )

    assert metrics.gross_profit == pytest.approx(-150.0)
    assert metrics.equity == pytest.approx(5000.0)


def test_metrics_to_dataframe() -> None:
    df = metrics_to_dataframe(compute_derived_metrics(make_profile()))

    assert list(df.columns) == ["metric", "value"]
    assert df["metric"].tolist() == [
        "Revenue",
        "Costs",
        "Gross Profit",
        "Net Profit",
        "Assets",
        "Liabilities",
        "Equity",
        "Cash Flow",
    ]
    equity = float(df.loc[df["metric"] == "Equity", "value"].iloc[0])
    assert equity == 3000.0
