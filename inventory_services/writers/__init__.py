"""Export writers: turn a rendered ``ExportData`` into file content."""

from inventory_services.writers.csv_writer import render_csv
from inventory_services.writers.xlsx_writer import render_xlsx

__all__ = ["render_csv", "render_xlsx"]
