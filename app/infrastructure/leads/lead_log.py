# app/infrastructure/leads/lead_log.py

import csv
import json
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from loguru import logger

LEAD_COLUMNS = ["timestamp", "chatId", "name", "flow", "data"]


@dataclass
class LeadRecord:
    chat_id: str
    name: str
    flow: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_row(self) -> list[str]:
        return [
            self.timestamp.isoformat(),
            self.chat_id,
            self.name,
            self.flow,
            json.dumps(self.data, ensure_ascii=False, default=str),
        ]


class CsvLeadLog:
    """Append-only CSV sink: one row per completed flow, header written once."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _ensure_header(self) -> None:
        if self.path.exists():
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", newline="", encoding="utf-8") as fh:
            csv.writer(fh, quoting=csv.QUOTE_ALL).writerow(LEAD_COLUMNS)

    def append(self, record: LeadRecord) -> None:
        with self._lock:
            self._ensure_header()
            with self.path.open("a", newline="", encoding="utf-8") as fh:
                csv.writer(fh, quoting=csv.QUOTE_ALL).writerow(record.to_row())
        logger.info("Lead recorded for {} ({})", record.chat_id, record.flow)
