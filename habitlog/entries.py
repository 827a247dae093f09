"""Daily journal entries: one per date."""

from __future__ import annotations

import logging
import uuid
from datetime import date

from habitlog.errors import EntryExistsError, NotFoundError, ValidationError
from habitlog.models import DEFAULT_MOOD, DailyEntry
from habitlog.periods import parse_day
from habitlog.store import Store

logger = logging.getLogger(__name__)


def save_entry(
    store: Store,
    day: date | str,
    text: str,
    mood: str = DEFAULT_MOOD,
    new_learning_text: str | None = None,
    overwrite: bool = False,
) -> DailyEntry:
    """Write the journal entry for ``day``.

    An existing entry for the date is only replaced when ``overwrite`` is set;
    the replacement keeps the existing entry's id.
    """
    if day is None or day == "":
        raise ValidationError("Please choose a date for the entry.")
    d = parse_day(day).isoformat()
    text = (text or "").strip()
    if not text:
        raise ValidationError("Please write something before saving.")

    entries = store.load_entries()
    existing = entries.get(d)
    if existing is not None and not overwrite:
        raise EntryExistsError(f"An entry for {d} already exists. Save again with overwrite to replace it.")

    entry = DailyEntry(
        id=existing.id if existing else str(uuid.uuid4()),
        date=d,
        text=text,
        mood=(mood or "").strip() or DEFAULT_MOOD,
        new_learning_text=(new_learning_text or "").strip() or None,
        misc_text_tracking=existing.misc_text_tracking if existing else None,
        timestamp=store.now().isoformat(timespec="seconds"),
    )
    entries[d] = entry
    store.save_entries(entries)
    logger.info("%s journal entry for %s", "Replaced" if existing else "Saved", d)
    return entry


def get_entry(store: Store, day: date | str) -> DailyEntry | None:
    return store.load_entries().get(parse_day(day).isoformat())


def list_entries(store: Store) -> list[DailyEntry]:
    """All entries, newest date first."""
    entries = store.load_entries()
    return [entries[d] for d in sorted(entries, reverse=True)]


def delete_entry(store: Store, day: date | str) -> DailyEntry:
    d = parse_day(day).isoformat()
    entries = store.load_entries()
    entry = entries.pop(d, None)
    if entry is None:
        raise NotFoundError(f"No journal entry for {d}")
    store.save_entries(entries)
    logger.info("Deleted journal entry for %s", d)
    return entry
