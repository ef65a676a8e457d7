import json
from datetime import date, datetime
from pathlib import Path

import pandas as pd
import pytest

from bizdash.cli import build_window, main, optional_window


@pytest.fixture
def sources_file(tmp_path: Path) -> Path:
    workbook = tmp_path / "store.xlsx"
    invoices = pd.DataFrame(
        [
            {"numerod": "F1", "fechae": "2024-01-05 10:00:00", "mtototal": 100.0, "costoprd": 40.0},
            {"numerod": "F2", "fechae": "2024-01-06 10:00:00", "mtototal": 50.0, "costoprd": 10.0},
        ]
    )
    receivables = pd.DataFrame(
        [{"numerod": "F1", "codclie": "C1", "fechae": "2024-01-05 10:00:00", "fechav": "2024-02-05 00:00:00", "saldo": 100.0}]
    )
    with pd.ExcelWriter(workbook, engine="openpyxl") as writer:
        invoices.to_excel(writer, sheet_name="invoices", index=False)
        receivables.to_excel(writer, sheet_name="accreceivables", index=False)

    path = tmp_path / "sources.json"
    path.write_text(json.dumps({"sources": [{"id": 1, "alias": "offline", "workbook": str(workbook)}]}))
    return path


def test_summary_command(sources_file: Path, capsys):
    code = main(["summary", "--sources", str(sources_file), "--start", "2024-01-01", "--end", "2024-01-31"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Management Summary" in out
    assert "Net sales" in out
    assert "150.00" in out


def test_transactions_command(sources_file: Path, capsys):
    code = main(
        [
            "transactions",
            "--source", "offline",
            "--type", "invoices-credit",
            "--sources", str(sources_file),
            "--start", "2024-01-01",
            "--end", "2024-01-31",
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "F1" in out
    assert "1 invoices-credit" in out


def test_unknown_source_exits_with_error(sources_file: Path):
    assert main(["summary", "--source", "nowhere", "--sources", str(sources_file)]) == 1


def test_build_window_defaults():
    window = build_window(None, date(2024, 3, 31), 30)

    assert window.start == datetime(2024, 3, 1)
    assert window.end == datetime(2024, 3, 31, 23, 59, 59)


def test_inverted_window_exits_with_error(sources_file: Path):
    code = main(["summary", "--sources", str(sources_file), "--start", "2024-02-01", "--end", "2024-01-01"])

    assert code == 1


def test_basket_window_uses_either_bound():
    assert optional_window(None, None, 30) is None

    window = optional_window(None, date(2024, 3, 31), 30)

    assert window.start == datetime(2024, 3, 1)
    assert window.end == datetime(2024, 3, 31, 23, 59, 59)
