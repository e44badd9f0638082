import csv
from datetime import date, datetime

import openpyxl

import exporter
from models import Transaction, BORROWED, RETURNED


def _history():
    return [
        Transaction("student1", "Clean Code", BORROWED, datetime(2024, 3, 1, 9, 30, 0), "B001"),
        Transaction("student1", "Clean Code", RETURNED, datetime(2024, 3, 5, 17, 0, 0), "B001"),
        Transaction("bob", "Deep Learning", BORROWED, datetime(2024, 4, 2, 12, 0, 0), "B015"),
    ]


def test_filter_transactions_inclusive_bounds():
    rows = exporter.filter_transactions(_history(), date(2024, 3, 1), date(2024, 3, 5))
    assert [t.action for t in rows] == [BORROWED, RETURNED]


def test_filter_transactions_open_ended():
    assert len(exporter.filter_transactions(_history())) == 3
    assert len(exporter.filter_transactions(_history(), date_from=date(2024, 4, 1))) == 1
    assert len(exporter.filter_transactions(_history(), date_to=date(2024, 3, 1))) == 1


def test_export_csv(tmp_path):
    path = tmp_path / "history.csv"
    assert exporter.export_csv(str(path), _history(), date_format="%d-%m-%Y %H:%M:%S") == 3
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == exporter.HEADERS
    assert rows[1] == ["student1", "Clean Code", "Borrowed", "01-03-2024 09:30:00"]
    assert len(rows) == 4


def test_export_xlsx(tmp_path):
    path = tmp_path / "history.xlsx"
    assert exporter.export_xlsx(str(path), _history()) == 3
    ws = openpyxl.load_workbook(path).active
    values = list(ws.values)
    assert list(values[0]) == exporter.HEADERS
    assert values[3][:3] == ("bob", "Deep Learning", "Borrowed")
