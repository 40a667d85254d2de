import io

import pandas as pd
import pytest

from lead_importer.errors import DecodeError, LeadImportError
from lead_importer.ingestion.decoder import DELIMITED, SPREADSHEET, detect_kind, iter_rows


def test_iter_rows_reads_csv_in_order_and_pads_short_rows(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text("Nome completo,Celular,Nota\nAna,11988887777,primeira\nBruno,11977776666\n", encoding="utf-8")

    rows = list(iter_rows(path))

    assert rows == [
        {"Nome completo": "Ana", "Celular": "11988887777", "Nota": "primeira"},
        {"Nome completo": "Bruno", "Celular": "11977776666", "Nota": ""},
    ]


def test_iter_rows_skips_blank_rows_and_strips_headers(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text(" Nome completo ,Celular\nAna,1\n,\n\nBruno,2\n", encoding="utf-8")

    rows = list(iter_rows(path))

    assert [row["Nome completo"] for row in rows] == ["Ana", "Bruno"]
    assert set(rows[0]) == {"Nome completo", "Celular"}


def test_iter_rows_keeps_leading_zeros_and_handles_bom(tmp_path):
    path = tmp_path / "export.csv"
    path.write_bytes("\ufeffNome completo,Celular\nAna,011988887777\n".encode("utf-8"))

    rows = list(iter_rows(path))

    assert rows == [{"Nome completo": "Ana", "Celular": "011988887777"}]


def test_iter_rows_sniffs_semicolon_delimiter(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text("Nome completo;Celular;Email comercial\nAna;11988887777;ana@example.com\n", encoding="utf-8")

    rows = list(iter_rows(path))

    assert rows == [{"Nome completo": "Ana", "Celular": "11988887777", "Email comercial": "ana@example.com"}]


def test_iter_rows_reads_tsv(tmp_path):
    path = tmp_path / "export.tsv"
    path.write_text("full_name\tphone_number\nAna Lima\t+5511988887777\n", encoding="utf-8")

    assert list(iter_rows(path)) == [{"full_name": "Ana Lima", "phone_number": "+5511988887777"}]


def test_iter_rows_accepts_open_handles():
    handle = io.StringIO("Nome completo,Celular\nAna,11988887777\n")

    rows = list(iter_rows(handle, DELIMITED))

    assert rows == [{"Nome completo": "Ana", "Celular": "11988887777"}]


def test_iter_rows_reads_spreadsheet(tmp_path):
    path = tmp_path / "export.xlsx"
    pd.DataFrame(
        [
            {"Nome completo": "Ana", "Celular": 11988887777, "Nota": "vip"},
            {"Nome completo": None, "Celular": None, "Nota": None},
            {"Nome completo": "Bruno", "Celular": 11977776666, "Nota": None},
        ]
    ).to_excel(path, index=False)

    rows = list(iter_rows(path))

    assert rows == [
        {"Nome completo": "Ana", "Celular": "11988887777", "Nota": "vip"},
        {"Nome completo": "Bruno", "Celular": "11977776666", "Nota": ""},
    ]


def test_iter_rows_is_lazy(tmp_path):
    path = tmp_path / "missing.csv"

    rows = iter_rows(path)

    assert iter(rows) is rows
    with pytest.raises(DecodeError):
        next(rows)


def test_empty_file_raises_decode_error(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")

    with pytest.raises(DecodeError):
        list(iter_rows(path))


def test_decode_error_is_an_import_error(tmp_path):
    with pytest.raises(LeadImportError):
        list(iter_rows(tmp_path / "nope.xlsx"))


def test_detect_kind_by_suffix(tmp_path):
    assert detect_kind("leads.CSV") == DELIMITED
    assert detect_kind(tmp_path / "leads.xlsx") == SPREADSHEET
    with pytest.raises(DecodeError):
        detect_kind("leads.json")


def test_iter_rows_ignores_trailing_delimiters(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text(
        "Nome completo,Celular,Email comercial\nAna,11988887777,ana@example.com,\nBruno,11977776666,,\n",
        encoding="utf-8",
    )

    rows = list(iter_rows(path))

    assert rows == [
        {"Nome completo": "Ana", "Celular": "11988887777", "Email comercial": "ana@example.com"},
        {"Nome completo": "Bruno", "Celular": "11977776666", "Email comercial": ""},
    ]


def test_iter_rows_keeps_rows_wider_than_the_header(tmp_path):
    path = tmp_path / "export.csv"
    path.write_text(
        "Nome completo,Celular\nAna,11988887777\nBia,11977776666,extra,extra2\nCaio,11966665555\n",
        encoding="utf-8",
    )

    rows = list(iter_rows(path))

    assert [row["Nome completo"] for row in rows] == ["Ana", "Bia", "Caio"]
    assert rows[1] == {"Nome completo": "Bia", "Celular": "11977776666"}


def test_iter_rows_sniffs_semicolon_delimiter_from_open_handles():
    handle = io.BytesIO("Nome completo;Celular;Observações\nAna;11988887777;ligar à tarde\n".encode("utf-8"))

    rows = list(iter_rows(handle, DELIMITED))

    assert rows == [{"Nome completo": "Ana", "Celular": "11988887777", "Observações": "ligar à tarde"}]


def test_legacy_xls_is_rejected(tmp_path):
    with pytest.raises(DecodeError):
        detect_kind(tmp_path / "leads.xls")
