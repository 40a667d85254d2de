from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Sequence

import pytest

from lead_importer.store.memory import InMemoryLeadStore

KOMMO_HEADER = ["Nome completo", "Celular", "Email comercial", "Nome da empresa", "Qual o faturamento atual?", "Nota"]


@pytest.fixture()
def store() -> InMemoryLeadStore:
    return InMemoryLeadStore()


@pytest.fixture()
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write rows (lists of cells) under ``header`` to a CSV file and return its path."""

    def _write(rows: Sequence[Sequence[str]], header: Sequence[str] = KOMMO_HEADER, name: str = "leads.csv") -> Path:
        lines: List[str] = [",".join(header)]
        for row in rows:
            lines.append(",".join(f'"{cell}"' if "," in cell or "\n" in cell else cell for cell in row))
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write
