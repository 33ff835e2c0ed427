"""
CSV writer for rendered exports.

Writes the header row followed by every data row with the standard
``csv`` module (RFC 4180 quoting), mirroring how the CSV source adapter
reads files on the way in.
"""

from __future__ import annotations

import csv
import io

from inventory_engines.analytics import ExportData


def render_csv(export: ExportData) -> str:
    """Return the export as CSV text (``\\r\\n`` line endings)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(export.headers)
    writer.writerows(export.rows)
    return buffer.getvalue()
