"""
CSV Export

Writes the caller's records of one entity as CSV. Columns are ID, the
entity's import labels and the two timestamps, so an export can be fed
straight back into the import (ID and timestamps are ignored there).
"""
from datetime import date
from typing import List, Optional
import csv
import io

from app.services.crud import EntityService
from app.services.fields import format_cell

LEADING_COLUMNS = ["ID"]
TRAILING_COLUMNS = ["Created At", "Updated At"]


def export_headers(service: EntityService) -> List[str]:
    return LEADING_COLUMNS + [f.label for f in service.import_fields] + TRAILING_COLUMNS


def export_csv(service: EntityService) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(export_headers(service))

    for obj in service.all_records():
        writer.writerow(
            [obj.id]
            + [f.export_value(obj) for f in service.import_fields]
            + [format_cell(obj.created_at), format_cell(obj.updated_at)]
        )
    return output.getvalue()


def export_filename(service: EntityService, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{service.plural}-{today.isoformat()}.csv"


def template_csv(service: EntityService) -> str:
    """Header row of an import file, required columns first."""
    ordered = sorted(service.import_fields, key=lambda f: not f.required)
    output = io.StringIO()
    csv.writer(output).writerow([f.label for f in ordered])
    return output.getvalue()
