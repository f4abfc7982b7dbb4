import csv
import json
import logging
import os
from typing import Callable, Optional, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from leadcrawl.domain.lead import LISTING_FIELDS, Lead
from leadcrawl.utils.datetime_utils import timestamp_slug

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv", "xlsx")
CORE_COLUMNS = ("name", "title", "company", "email", "phone")
MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 50


class LeadExporter:
    """Writes leads to `<output_dir>/leads_<timestamp>.<fmt>` and returns the path."""

    def __init__(self, output_dir: str, clock: Optional[Callable[[], str]] = None):
        self.output_dir = output_dir
        self._clock = clock or timestamp_slug

    def columns(self, leads: Sequence[Lead]) -> tuple[str, ...]:
        if any(lead.has_listing_fields() for lead in leads):
            return CORE_COLUMNS + LISTING_FIELDS + ("source_url",)
        return CORE_COLUMNS + ("source_url",)

    def _rows(self, leads: Sequence[Lead]) -> list[dict]:
        columns = self.columns(leads)
        return [{c: getattr(lead, c) or "" for c in columns} for lead in leads]

    def _write_json(self, path: str, leads: Sequence[Lead]) -> None:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump({"total": len(leads), "leads": self._rows(leads)}, fh, indent=2, ensure_ascii=False)

    def _write_csv(self, path: str, leads: Sequence[Lead]) -> None:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            writer = csv.DictWriter(fh, fieldnames=list(self.columns(leads)))
            writer.writeheader()
            writer.writerows(self._rows(leads))

    def _write_xlsx(self, path: str, leads: Sequence[Lead]) -> None:
        columns = self.columns(leads)
        rows = self._rows(leads)
        wb = Workbook()
        ws = wb.active
        ws.title = "Leads"
        ws.append(list(columns))
        for row in rows:
            ws.append([row[c] for c in columns])
        # widths fit the longest value, clamped to 10..50 characters
        for i, column in enumerate(columns, start=1):
            longest = max([len(column)] + [len(str(row[column])) for row in rows])
            width = min(max(longest, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)
            ws.column_dimensions[get_column_letter(i)].width = width
        wb.save(path)

    def write(self, leads: Sequence[Lead], fmt: str = "json") -> str:
        fmt = (fmt or "").strip().lower()
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported format: {fmt!r}")
        os.makedirs(self.output_dir, exist_ok=True)
        path = os.path.join(self.output_dir, f"leads_{self._clock()}.{fmt}")
        if fmt == "json":
            self._write_json(path, leads)
        elif fmt == "csv":
            self._write_csv(path, leads)
        else:
            self._write_xlsx(path, leads)
        logger.info("Exported %d lead(s) to %s", len(leads), path)
        return path
