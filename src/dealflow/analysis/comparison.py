# src/dealflow/analysis/comparison.py

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

import pandas as pd

from dealflow.analysis.metrics import analyze_property
from dealflow.domain.property import InvalidPropertyParameters, parse_property_parameters


def _roi_sort_key(item: tuple[int, dict[str, Any]]) -> tuple[int, float, int]:
    idx, comp = item
    roi = comp["analysis"]["metrics"]["roi"]
    # ROI descending, unknown ROI last, input order breaks ties
    if roi is None:
        return (1, 0.0, idx)
    return (0, -float(roi), idx)


def compare_properties(properties: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Analyse each property and rank the set by ROI (best first).

    Raises InvalidPropertyParameters for the first property that fails validation;
    callers wanting per-row errors should use compare_frame.
    """
    comparisons: list[dict[str, Any]] = []
    for prop in properties:
        report = analyze_property(parse_property_parameters(prop))
        comparisons.append({"property": dict(prop), "analysis": report.to_dict()})

    if not comparisons:
        raise ValueError("No properties to compare")

    ranked = [c for _, c in sorted(enumerate(comparisons), key=_roi_sort_key)]

    return {
        "success": True,
        "comparisons": ranked,
        "bestDeal": ranked[0],
        "ranking": [
            {
                "rank": i + 1,
                "address": c["property"].get("address"),
                "roi": c["analysis"]["metrics"]["roi"],
                "cashFlow": c["analysis"]["monthlyNumbers"]["cashFlow"],
            }
            for i, c in enumerate(ranked)
        ],
    }


_SNAKE_RE = re.compile(r"_([a-z])")


def _camel(col: str) -> str:
    return _SNAKE_RE.sub(lambda m: m.group(1).upper(), col.strip())


def compare_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Batch version for CSV/parquet input.

    Accepts camelCase or snake_case columns (purchase_price / purchasePrice ...).
    Returns one row per input row with the headline numbers, ranked by ROI,
    plus an `error` column for rows that failed validation (ranked last).
    """
    frame = df.rename(columns={c: _camel(str(c)) for c in df.columns})

    rows: list[dict[str, Any]] = []
    for idx, rec in enumerate(frame.to_dict(orient="records")):
        clean = {k: (None if pd.isna(v) else v) for k, v in rec.items()}
        out: dict[str, Any] = {
            "row": idx,
            "address": clean.get("address"),
            "monthlyCashFlow": None,
            "annualNoi": None,
            "capRate": None,
            "cashOnCashReturn": None,
            "roi": None,
            "verdict": None,
            "error": None,
        }
        try:
            report = analyze_property(parse_property_parameters(clean))
        except InvalidPropertyParameters as e:
            out["error"] = str(e)
        else:
            out.update(
                monthlyCashFlow=report.monthly_numbers.cash_flow,
                annualNoi=report.annual_numbers.noi,
                capRate=report.metrics.cap_rate,
                cashOnCashReturn=report.metrics.cash_on_cash_return,
                roi=report.metrics.roi,
                verdict=report.recommendation.verdict,
            )
        rows.append(out)

    result = pd.DataFrame(rows)
    if result.empty:
        return result

    for col in ("monthlyCashFlow", "annualNoi", "capRate", "cashOnCashReturn", "roi"):
        result[col] = pd.to_numeric(result[col], errors="coerce")

    result["_failed"] = result["error"].notna()
    result = result.sort_values(
        by=["_failed", "roi", "row"],
        ascending=[True, False, True],
        na_position="last",
        kind="mergesort",
    ).drop(columns="_failed")
    result.insert(0, "rank", range(1, len(result) + 1))
    return result.reset_index(drop=True)
