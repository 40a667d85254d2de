"""Streaming decoder turning CSV/XLSX exports into header→value row maps."""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import IO, Any, Iterator, List, Optional, Sequence, Union

import pandas as pd

from ..errors import DecodeError
from ..models import RawRow

LOGGER = logging.getLogger(__name__)

Source = Union[str, Path, IO[Any]]

DELIMITED = "delimited"
SPREADSHEET = "spreadsheet"

_DELIMITED_SUFFIXES = {".csv", ".tsv", ".txt"}
_SPREADSHEET_SUFFIXES = {".xlsx", ".xlsm"}
_CHUNK_SIZE = 500


def detect_kind(source: Source) -> str:
    """Infer the file kind from the path (or the handle's ``name``) suffix."""

    name = source if isinstance(source, (str, Path)) else getattr(source, "name", "")
    suffix = Path(str(name or "")).suffix.lower()
    if suffix in _DELIMITED_SUFFIXES:
        return DELIMITED
    if suffix in _SPREADSHEET_SUFFIXES:
        return SPREADSHEET
    raise DecodeError(f"Cannot infer file kind from suffix '{suffix}'. Use CSV or Excel spreadsheet")


def iter_rows(
    source: Source,
    kind: Optional[str] = None,
    *,
    sheet_name: Union[str, int] = 0,
    encoding: str = "utf-8-sig",
    delimiter: Optional[str] = None,
) -> Iterator[RawRow]:
    """Yield one :data:`RawRow` per non-blank data row, in file order.

    Parameters
    ----------
    source:
        Path to the export, or an already opened file handle.
    kind:
        ``"delimited"`` or ``"spreadsheet"``. Inferred from the suffix when omitted.
    sheet_name:
        Worksheet index or title for spreadsheets. Ignored for delimited text.
    encoding:
        Text encoding for delimited files; the default strips the BOM Excel adds.
    delimiter:
        Column separator. Sniffed from the header when omitted (``.tsv`` uses tabs).
    """

    kind = kind or detect_kind(source)
    LOGGER.debug("Decoding %s as %s", getattr(source, "name", source), kind)
    if kind == DELIMITED:
        yield from _iter_delimited(source, encoding=encoding, delimiter=delimiter)
    elif kind == SPREADSHEET:
        yield from _iter_spreadsheet(source, sheet_name=sheet_name)
    else:
        raise DecodeError(f"Unsupported file kind '{kind}'")


def _iter_delimited(source: Source, *, encoding: str, delimiter: Optional[str]) -> Iterator[RawRow]:
    # index_col=False keeps trailing delimiters from shifting values under the
    # wrong header; wider rows are kept and cut to the header width
    loader_kwargs: dict = {
        "dtype": str,
        "keep_default_na": False,
        "skip_blank_lines": True,
        "index_col": False,
        "engine": "python",
        "chunksize": _CHUNK_SIZE,
        "encoding": encoding,
        "sep": delimiter or _default_delimiter(source),
    }

    try:
        with pd.read_csv(source, **loader_kwargs) as reader:
            headers: Optional[List[str]] = None
            for chunk in reader:
                if headers is None:
                    headers = _clean_headers(chunk.columns)
                for values in chunk.itertuples(index=False, name=None):
                    row = _build_row(headers, values)
                    if row is not None:
                        yield row
    except (FileNotFoundError, IsADirectoryError, PermissionError) as exc:
        raise DecodeError(f"Unable to open '{source}': {exc}") from exc
    except pd.errors.EmptyDataError as exc:
        raise DecodeError("File has no header columns") from exc
    except (pd.errors.ParserError, csv.Error, UnicodeDecodeError, ValueError) as exc:
        raise DecodeError(f"Unable to decode delimited file: {exc}") from exc


def _default_delimiter(source: Source) -> Optional[str]:
    """Tab for ``.tsv`` names; otherwise ``None`` so pandas sniffs the header line."""

    name = source if isinstance(source, (str, Path)) else getattr(source, "name", "")
    if Path(str(name or "")).suffix.lower() == ".tsv":
        return "\t"
    return None


def _iter_spreadsheet(source: Source, *, sheet_name: Union[str, int]) -> Iterator[RawRow]:
    from openpyxl import load_workbook
    from openpyxl.utils.exceptions import InvalidFileException

    filename = str(source) if isinstance(source, Path) else source
    try:
        workbook = load_workbook(filename=filename, read_only=True, data_only=True)
    except (FileNotFoundError, IsADirectoryError, PermissionError, InvalidFileException) as exc:
        raise DecodeError(f"Unable to open spreadsheet '{source}': {exc}") from exc
    except (KeyError, OSError, ValueError) as exc:
        raise DecodeError(f"Unable to decode spreadsheet: {exc}") from exc

    try:
        if isinstance(sheet_name, int):
            sheet = workbook.worksheets[sheet_name]
        else:
            sheet = workbook[sheet_name]
        rows = sheet.iter_rows(values_only=True)
        try:
            header_row = next(rows)
        except StopIteration:
            raise DecodeError("Spreadsheet has no header columns") from None
        headers = _clean_headers(header_row)
        for cells in rows:
            row = _build_row(headers, cells)
            if row is not None:
                yield row
    except (IndexError, KeyError) as exc:
        raise DecodeError(f"Worksheet '{sheet_name}' not found") from exc
    finally:
        workbook.close()


def _clean_headers(raw_headers: Sequence[Any]) -> List[str]:
    # trailing empty header cells are common in spreadsheet exports
    headers = [_cell_to_text(value) for value in raw_headers]
    while headers and not headers[-1]:
        headers.pop()
    if not headers:
        raise DecodeError("File has no header columns")
    return headers


def _build_row(headers: Sequence[str], values: Sequence[Any]) -> Optional[RawRow]:
    cells = [_cell_to_text(value) for value in values[: len(headers)]]
    if not any(cells):
        return None
    cells.extend([""] * (len(headers) - len(cells)))
    return {header: cell for header, cell in zip(headers, cells) if header}


def _cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


__all__ = ["DELIMITED", "SPREADSHEET", "detect_kind", "iter_rows"]
