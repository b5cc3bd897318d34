"""
Placement records from the broker's renewals CSV export.

The export is optional. When it is present its rows override the CRM's
financial fields for deals with the same placement name.
"""

from __future__ import annotations

import csv
from pathlib import Path

from app.features.renewals.domain.models import PlacementRecord
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class PlacementRepository:
    @staticmethod
    def load(path: str | Path | None) -> dict[str, PlacementRecord]:
        """
        Load placement records keyed by placement name.

        Returns an empty mapping when no path is configured, the file is
        missing or it cannot be parsed; enrichment then relies on CRM data only.
        """
        if not path:
            return {}

        csv_path = Path(path)
        if not csv_path.exists():
            logger.warning("Placement export not found", path=str(csv_path))
            return {}

        try:
            with csv_path.open(newline="", encoding="utf-8-sig") as handle:
                reader = csv.DictReader(handle)
                records = {}
                for row in reader:
                    cleaned = {
                        key.strip(): (value or "").strip()
                        for key, value in row.items()
                        if key is not None and not isinstance(value, list)
                    }
                    record = PlacementRecord.from_csv_row(cleaned)
                    if record.placement_name:
                        records[record.placement_name] = record
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            logger.error("Failed to load placement export", path=str(csv_path), error=str(e))
            return {}

        logger.info("Placement export loaded", path=str(csv_path), record_count=len(records))
        return records
