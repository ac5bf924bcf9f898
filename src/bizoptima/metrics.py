# BizOptima - Business Data & Analytics core for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Computation of derived financial metrics for BizOptima.

Derived metrics are computed on demand from the current business profile and
are never stored:

    gross_profit = revenue - costs
    net_profit   = gross_profit      (no further expense is modeled)
    equity       = assets - liabilities

The resulting ``DerivedMetrics`` structure is the input of the AI insights
layer, which owns every ratio that involves a division (debt-to-equity,
margins, ...). This module therefore performs no division and has no error
conditions.
"""

from typing import Optional

import pandas as pd

from .models import DerivedMetrics, Profile

# Display order and labels used by metrics_to_dataframe.
METRIC_LABELS: tuple[tuple[str, str], ...] = (
    ("revenue", "Revenue"),
    ("costs", "Costs"),
    ("gross_profit", "Gross Profit"),
    ("net_profit", "Net Profit"),
    ("assets", "Assets"),
    ("liabilities", "Liabilities"),
    ("equity", "Equity"),
    ("cash_flow", "Cash Flow"),
)


def compute_derived_metrics(profile: Optional[Profile]) -> Optional[DerivedMetrics]:
    """
    Compute derived metrics from a business profile.

    Parameters
    ----------
    profile:
        The current profile, or None when no profile exists.

    Returns
    -------
    DerivedMetrics or None
        None when ``profile`` is None.
    """
    if profile is None:
        return None

    gross_profit = profile.revenue - profile.costs
    net_profit = gross_profit
    equity = profile.assets - profile.liabilities

    return DerivedMetrics(
        revenue=profile.revenue,
        costs=profile.costs,
        expenses=profile.costs,
        gross_profit=gross_profit,
        net_profit=net_profit,
        assets=profile.assets,
        liabilities=profile.liabilities,
        equity=equity,
        cash_flow=profile.cash_flow,
    )


def metrics_to_dataframe(metrics: DerivedMetrics, decimals: int = 2) -> pd.DataFrame:
    """
    Convert derived metrics into a two-column DataFrame (metric, value).

    Values are rounded to ``decimals`` digits for display.
    """
    rows = [
        {"metric": label, "value": round(float(getattr(metrics, key)), decimals)}
        for key, label in METRIC_LABELS
    ]
    return pd.DataFrame(rows, columns=["metric", "value"])
