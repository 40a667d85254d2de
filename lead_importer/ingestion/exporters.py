"""Export an import run's tally and row-level failures to CSV or Excel."""
from __future__ import annotations

from pathlib import Path
from typing import List, MutableMapping, Optional, Union

import pandas as pd

from ..models import ImportResult

PathLike = Union[str, Path]

_ERROR_COLUMNS = ["row", "name", "phone", "outcome", "error"]


def export_import_report(
    result: ImportResult,
    path: PathLike,
    *,
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write the run summary to ``path``.

    CSV/TSV output holds one section per row kind (``summary``, ``distribution``
    and ``error`` rows in a ``section`` column). Excel output gets one sheet per
    section.
    """

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = output_path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        result_to_dataframe(result).to_csv(output_path, index=False, **exporter_kwargs)
        return output_path

    if suffix in {".xlsx", ".xlsm"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        with pd.ExcelWriter(output_path, engine=engine) as writer:
            summary_frame(result).to_excel(writer, sheet_name="Summary", index=False)
            distribution_frame(result).to_excel(writer, sheet_name="Distribution", index=False)
            errors_frame(result).to_excel(writer, sheet_name="Errors", index=False)
        return output_path

    raise ValueError(f"Unsupported report file extension: {suffix}")


def summary_frame(result: ImportResult) -> pd.DataFrame:
    rows = [
        {"metric": "total", "value": result.total},
        {"metric": "imported", "value": result.imported},
        {"metric": "updated", "value": result.updated},
        {"metric": "duplicates", "value": result.duplicates},
        {"metric": "invalid", "value": result.invalid},
        {"metric": "cancelled", "value": int(result.cancelled)},
    ]
    if result.tag is not None:
        rows.append({"metric": "tag", "value": result.tag.name})
    return pd.DataFrame(rows, columns=["metric", "value"])


def distribution_frame(result: ImportResult) -> pd.DataFrame:
    counts = result.distribution or {}
    return pd.DataFrame(
        [{"member_id": member_id, "leads": count} for member_id, count in counts.items()],
        columns=["member_id", "leads"],
    )


def errors_frame(result: ImportResult) -> pd.DataFrame:
    return pd.DataFrame(
        [{column: error.get(column) for column in _ERROR_COLUMNS} for error in result.errors],
        columns=_ERROR_COLUMNS,
    )


def result_to_dataframe(result: ImportResult) -> pd.DataFrame:
    """Flatten the whole report into one frame keyed by a ``section`` column."""

    frames: List[pd.DataFrame] = [
        summary_frame(result).assign(section="summary"),
        distribution_frame(result).assign(section="distribution"),
        errors_frame(result).assign(section="error"),
    ]
    combined = pd.concat([frame for frame in frames if not frame.empty], ignore_index=True, sort=False)
    ordered = ["section", "metric", "value", "member_id", "leads", *_ERROR_COLUMNS]
    return combined.reindex(columns=ordered)


__all__ = [
    "export_import_report",
    "result_to_dataframe",
    "summary_frame",
    "distribution_frame",
    "errors_frame",
]
