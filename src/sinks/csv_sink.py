"""
CSV record sink.

Writes an output record set to a CSV file with a fixed header. The file is
written to a temporary sibling and renamed into place, so readers never see
a partially written report.
"""

import csv
import os
import tempfile
from pathlib import Path
from typing import Mapping, Sequence

from src.core.errors import SinkWriteError
from src.core.models import OutputSchema
from src.observability.logger import get_logger
from src.observability.metrics import increment_counter, rows_written_total

logger = get_logger(__name__)


class CsvRecordSink:
    """
    Writes records to one CSV file.

    Args:
        path: Destination file path; parent directories are created
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def write(self, records: Sequence[Mapping[str, str]], schema: OutputSchema) -> int:
        """
        Write the header row, then one row per record in order.

        Records are expected to be normalized already (every schema field
        present); fields outside the schema are ignored.

        Returns:
            Number of data rows written

        Raises:
            SinkWriteError: If the destination cannot be created or written
        """
        logger.info(f"Writing {len(records)} records to CSV...", extra={"path": str(self.path)})

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f, lineterminator="\n")
                writer.writerow(schema.titles)
                for record in records:
                    writer.writerow([record[field_id] for field_id in schema.field_ids])
            os.replace(tmp_name, self.path)
        except (OSError, KeyError) as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise SinkWriteError(str(self.path), str(e)) from e

        increment_counter(rows_written_total, len(records), report=schema.name)
        logger.info(f"Data has been written to {self.path.name}", extra={"path": str(self.path)})
        return len(records)
