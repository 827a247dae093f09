"""Storage adapters for HabitLog.

``Store`` is the repository interface the services are handed; the pure
aggregation code never touches it. Two adapters ship:

- ``FileStore``: a workspace directory of YAML/JSON files written atomically.
- ``MemoryStore``: an in-process key-value store holding JSON strings, the
  same shape a browser's local storage keeps.

The three per-year tables (tracking records, yearly progress, miss counts)
live in one document per year so a single transition is a single write.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator
from zoneinfo import ZoneInfo

from habitlog.errors import StorageError
from habitlog.fileio import read_json, read_yaml, write_json_atomic, write_yaml_atomic
from habitlog.models import AppSettings, DailyEntry, FineDetail, Habit, YearLedger
from habitlog.workspace import (
    entries_path,
    fines_path,
    habits_path,
    now_local,
    settings_path,
    today_local,
    tracking_path,
    workspace_root,
)

logger = logging.getLogger(__name__)

# period_key -> habit_id -> fines
FinesLedger = dict[str, dict[str, list[FineDetail]]]


def fines_from_dict(d: dict[str, Any]) -> FinesLedger:
    ledger: FinesLedger = {}
    for period_key, by_habit in (d or {}).items():
        if not isinstance(by_habit, dict):
            continue
        for habit_id, fines in by_habit.items():
            ledger.setdefault(period_key, {})[habit_id] = [
                FineDetail.from_dict(f) for f in (fines or []) if isinstance(f, dict)
            ]
    return ledger


def fines_to_dict(ledger: FinesLedger) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for period_key in sorted(ledger):
        by_habit = {h: [f.to_dict() for f in fines] for h, fines in ledger[period_key].items() if fines}
        if by_habit:
            out[period_key] = by_habit
    return out


class Store(ABC):
    """Repository interface over habits, tracking ledgers, fines, entries and settings."""

    @abstractmethod
    def load_habits(self) -> list[Habit]: ...

    @abstractmethod
    def save_habits(self, habits: list[Habit]) -> None: ...

    @abstractmethod
    def load_year(self, year: str) -> YearLedger: ...

    @abstractmethod
    def save_year(self, ledger: YearLedger) -> None: ...

    @abstractmethod
    def load_fines(self) -> FinesLedger: ...

    @abstractmethod
    def save_fines(self, ledger: FinesLedger) -> None: ...

    @abstractmethod
    def load_entries(self) -> dict[str, DailyEntry]: ...

    @abstractmethod
    def save_entries(self, entries: dict[str, DailyEntry]) -> None: ...

    @abstractmethod
    def load_settings(self) -> AppSettings: ...

    @abstractmethod
    def save_settings(self, settings: AppSettings) -> None: ...

    @abstractmethod
    def now(self) -> datetime:
        """Current time in the user's timezone."""

    def today(self) -> date:
        return self.now().date()

    @contextmanager
    def year_transaction(self, year: str | int) -> Iterator[YearLedger]:
        """Load a year's ledger, let the caller mutate it, write it once.

        Nothing is written if the block raises.
        """
        ledger = self.load_year(str(year))
        yield ledger
        self.save_year(ledger)


class FileStore(Store):
    def __init__(self, root: Path | None = None):
        self.root = root if root is not None else workspace_root()

    def load_habits(self) -> list[Habit]:
        data = read_yaml(habits_path(self.root))
        return [Habit.from_dict(h) for h in (data.get("habits") or []) if isinstance(h, dict)]

    def save_habits(self, habits: list[Habit]) -> None:
        write_yaml_atomic(habits_path(self.root), {"habits": [h.to_dict() for h in habits]})

    def load_year(self, year: str) -> YearLedger:
        return YearLedger.from_dict(read_json(tracking_path(self.root, year)), year=str(year))

    def save_year(self, ledger: YearLedger) -> None:
        write_json_atomic(tracking_path(self.root, ledger.year), ledger.to_dict())
        logger.debug("Saved tracking ledger for %s", ledger.year)

    def load_fines(self) -> FinesLedger:
        return fines_from_dict(read_json(fines_path(self.root)))

    def save_fines(self, ledger: FinesLedger) -> None:
        write_json_atomic(fines_path(self.root), fines_to_dict(ledger))

    def load_entries(self) -> dict[str, DailyEntry]:
        data = read_json(entries_path(self.root))
        entries = [DailyEntry.from_dict(e) for e in (data.get("entries") or []) if isinstance(e, dict)]
        return {e.date: e for e in entries}

    def save_entries(self, entries: dict[str, DailyEntry]) -> None:
        rows = [entries[d].to_dict() for d in sorted(entries)]
        write_json_atomic(entries_path(self.root), {"entries": rows})

    def load_settings(self) -> AppSettings:
        return AppSettings.from_dict(read_json(settings_path(self.root)))

    def save_settings(self, settings: AppSettings) -> None:
        write_json_atomic(settings_path(self.root), settings.to_dict())

    def now(self) -> datetime:
        return now_local(self.root)

    def today(self) -> date:
        return today_local(self.root)


class MemoryStore(Store):
    """Key-value store of JSON strings, one key per table."""

    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(data or {})

    def _get(self, key: str) -> dict[str, Any]:
        raw = self.data.get(key)
        if not raw:
            return {}
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Corrupt value under %s: %s", key, e)
            raise StorageError(f"Could not read {key}: {e}") from e
        return value if isinstance(value, dict) else {}

    def _set(self, key: str, value: dict[str, Any]) -> None:
        self.data[key] = json.dumps(value, ensure_ascii=False)

    def load_habits(self) -> list[Habit]:
        rows = self._get("habits").get("habits") or []
        return [Habit.from_dict(h) for h in rows if isinstance(h, dict)]

    def save_habits(self, habits: list[Habit]) -> None:
        self._set("habits", {"habits": [h.to_dict() for h in habits]})

    def load_year(self, year: str) -> YearLedger:
        return YearLedger.from_dict(self._get(f"tracking:{year}"), year=str(year))

    def save_year(self, ledger: YearLedger) -> None:
        self._set(f"tracking:{ledger.year}", ledger.to_dict())

    def load_fines(self) -> FinesLedger:
        return fines_from_dict(self._get("fines"))

    def save_fines(self, ledger: FinesLedger) -> None:
        self._set("fines", fines_to_dict(ledger))

    def load_entries(self) -> dict[str, DailyEntry]:
        rows = self._get("entries").get("entries") or []
        entries = [DailyEntry.from_dict(e) for e in rows if isinstance(e, dict)]
        return {e.date: e for e in entries}

    def save_entries(self, entries: dict[str, DailyEntry]) -> None:
        self._set("entries", {"entries": [entries[d].to_dict() for d in sorted(entries)]})

    def load_settings(self) -> AppSettings:
        return AppSettings.from_dict(self._get("settings"))

    def save_settings(self, settings: AppSettings) -> None:
        self._set("settings", settings.to_dict())

    def now(self) -> datetime:
        try:
            tz = ZoneInfo(self.load_settings().timezone)
        except (ValueError, KeyError):
            tz = ZoneInfo("UTC")
        return datetime.now(tz)
