"""
Reading hap.py benchmark results.

hap.py writes ``<prefix>.summary.csv`` with one row per variant type (SNP,
INDEL) and filter state (ALL, PASS). This module loads that table with pandas
and reduces it to the headline accuracy metrics.
"""

import logging
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from .pipeline_core.error_handling import FileFormatError

logger = logging.getLogger(__name__)

SUMMARY_SUFFIX = ".summary.csv"

REQUIRED_COLUMNS = ["Type", "Filter", "METRIC.Recall", "METRIC.Precision", "METRIC.F1_Score"]

COUNT_COLUMNS = ["TRUTH.TOTAL", "TRUTH.TP", "TRUTH.FN", "QUERY.TOTAL", "QUERY.FP"]


def summary_path(output_prefix: Union[str, Path]) -> Path:
    """Return the summary CSV path hap.py writes for an ``-o`` prefix."""
    output_prefix = Path(output_prefix)
    return output_prefix.with_name(output_prefix.name + SUMMARY_SUFFIX)


def load_summary(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a hap.py summary CSV.

    Parameters
    ----------
    path : str or Path
        The ``*.summary.csv`` file.

    Returns
    -------
    pd.DataFrame
        Columns Type, Filter, the truth/query counts present in the file and
        Recall, Precision, F1, sorted by Type then Filter.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    FileFormatError
        If a required column is missing.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"hap.py summary not found: {path}")

    df = pd.read_csv(path)
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise FileFormatError(str(path), f"hap.py summary with columns {missing}")

    keep = ["Type", "Filter"] + [c for c in COUNT_COLUMNS if c in df.columns]
    summary = df[keep + REQUIRED_COLUMNS[2:]].rename(
        columns={
            "METRIC.Recall": "Recall",
            "METRIC.Precision": "Precision",
            "METRIC.F1_Score": "F1",
        }
    )
    for col in ("Recall", "Precision", "F1"):
        summary[col] = pd.to_numeric(summary[col], errors="coerce")

    return summary.sort_values(["Type", "Filter"]).reset_index(drop=True)


def headline_metrics(
    summary: pd.DataFrame, filter_value: str = "PASS"
) -> Dict[str, Dict[str, float]]:
    """
    Return Recall/Precision/F1 per variant type for one filter state.

    Parameters
    ----------
    summary : pd.DataFrame
        As returned by :func:`load_summary`.
    filter_value : str
        "PASS" (default) or "ALL".

    Returns
    -------
    dict
        ``{"INDEL": {"Recall": ..., "Precision": ..., "F1": ...}, "SNP": {...}}``
    """
    rows = summary[summary["Filter"] == filter_value]
    return {
        row["Type"]: {
            "Recall": float(row["Recall"]),
            "Precision": float(row["Precision"]),
            "F1": float(row["F1"]),
        }
        for _, row in rows.iterrows()
    }


def format_summary(summary: pd.DataFrame) -> List[str]:
    """Format the summary as aligned text lines for logging."""
    lines = [f"{'Type':6s} {'Filter':6s} {'Recall':>9s} {'Precision':>9s} {'F1':>9s}"]
    for _, row in summary.iterrows():
        lines.append(
            f"{row['Type']:6s} {row['Filter']:6s} "
            f"{row['Recall']:9.6f} {row['Precision']:9.6f} {row['F1']:9.6f}"
        )
    return lines
