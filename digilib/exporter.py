# exporter.py
"""
Export the transaction history to CSV or XLSX, optionally limited to a date range.
"""

import csv
import logging

import openpyxl

from settings import settings

logger = logging.getLogger(__name__)

HEADERS = ["Username", "Book Title", "Action", "Date"]


def filter_transactions(transactions, date_from=None, date_to=None):
    """Keep transactions whose date falls within [date_from, date_to]; either bound may be None."""
    rows = []
    for t in transactions:
        day = t.timestamp.date()
        if date_from and day < date_from:
            continue
        if date_to and day > date_to:
            continue
        rows.append(t)
    return rows


def _row(t, date_format):
    return [t.username, t.book_title, t.action, t.formatted_date(date_format)]


def export_csv(filename, transactions, date_format=None):
    date_format = date_format or settings.date_format
    with open(filename, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(HEADERS)
        for t in transactions:
            writer.writerow(_row(t, date_format))
    logger.info("exported %d transactions to %s", len(transactions), filename)
    return len(transactions)


def export_xlsx(filename, transactions, date_format=None):
    date_format = date_format or settings.date_format
    wb = openpyxl.Workbook(); ws = wb.active; ws.title = "History"
    ws.append(HEADERS)
    for t in transactions:
        ws.append(_row(t, date_format))
    wb.save(filename)
    logger.info("exported %d transactions to %s", len(transactions), filename)
    return len(transactions)
