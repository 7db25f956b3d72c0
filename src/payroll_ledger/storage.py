from __future__ import annotations

import json
import os
import re
import tempfile
import threading
from dataclasses import asdict, replace
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from .core.logging import get_logger
from .exceptions import ConfigurationError, InvalidInputError, UnbalancedEntryError
from .models import JournalEntry, JournalLine

logger = get_logger(__name__)

PERIOD_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")
ENTRY_PREFIX = "JE"

# Held across re-read, post and save so concurrent posts never reuse a number.
_LEDGER_LOCK = threading.Lock()


def format_entry_number(prefix: str, year: int, number: int) -> str:
    return f"{prefix}-{year}-{number:04d}"


def parse_period(period: str) -> Tuple[int, int]:
    match = PERIOD_PATTERN.match(period or "")
    if not match:
        raise InvalidInputError(f"Period must look like YYYY-MM, got {period!r}")
    return int(match.group(1)), int(match.group(2))


class LedgerStore:
    """Posted journal entries kept in a JSON file, keyed by ``YYYY-MM`` period."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.records: List[Tuple[str, JournalEntry]] = []
        if self.path.exists():
            self.load()

    def load(self) -> None:
        try:
            content = json.loads(self.path.read_text())
            self.records = [
                (record["period"], self._deserialize_entry(record)) for record in content.get("entries", [])
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(f"Ledger file {self.path} is corrupt: {exc}") from exc

    def save(self) -> None:
        payload = {"entries": [self._serialize_entry(period, entry) for period, entry in self.records]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Readers see either the old file or the new one.
        with tempfile.NamedTemporaryFile(
            "w", dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp", delete=False
        ) as handle:
            handle.write(json.dumps(payload, indent=2))
        os.replace(handle.name, self.path)

    def post_and_save(self, entry: JournalEntry, period: str) -> JournalEntry:
        """Post ``entry`` on top of the file's current contents and persist it.

        The file is re-read under a process-wide lock, so two stores opened on
        the same path before either posts still get distinct entry numbers and
        neither overwrites the other.
        """
        with _LEDGER_LOCK:
            if self.path.exists():
                self.load()
            posted = self.post(entry, period)
            self.save()
        return posted

    def next_entry_number(self, year: int) -> str:
        prefix = f"{ENTRY_PREFIX}-{year}-"
        used = [
            int(entry.entry_number[len(prefix):])
            for _, entry in self.records
            if entry.entry_number and entry.entry_number.startswith(prefix)
        ]
        return format_entry_number(ENTRY_PREFIX, year, max(used, default=0) + 1)

    def post(self, entry: JournalEntry, period: str) -> JournalEntry:
        year, _ = parse_period(period)
        if not entry.lines:
            raise InvalidInputError("Cannot post a journal entry without lines")
        if not entry.is_balanced:
            raise UnbalancedEntryError(entry.total_debits, entry.total_credits)
        posted = replace(entry, entry_number=self.next_entry_number(year))
        self.records.append((period, posted))
        logger.info(
            "journal_entry_posted",
            entry_number=posted.entry_number,
            period=period,
            total_debits=posted.total_debits,
        )
        return posted

    def entries(self, period: Optional[str] = None) -> List[JournalEntry]:
        if period is not None:
            parse_period(period)
        return [entry for entry_period, entry in self.records if period is None or entry_period == period]

    def periods(self) -> List[str]:
        return sorted({period for period, _ in self.records})

    @staticmethod
    def _serialize_entry(period: str, entry: JournalEntry) -> dict:
        payload = asdict(entry)
        payload["period"] = period
        payload["entry_date"] = entry.entry_date.isoformat() if entry.entry_date else None
        return payload

    @staticmethod
    def _deserialize_entry(data: dict) -> JournalEntry:
        entry_date = data.get("entry_date")
        return JournalEntry(
            lines=tuple(JournalLine(**line) for line in data.get("lines", [])),
            entry_date=date.fromisoformat(entry_date) if entry_date else None,
            description=data.get("description", ""),
            source=data.get("source", "payroll"),
            entry_number=data.get("entry_number"),
        )
