"""
Repository pattern for data access.

Defines the history and usage store interfaces and their SQLite and
in-memory adapters. The generation session only depends on the
interfaces, so the persistence strategy can be swapped freely.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from .db import DEFAULT_DB_PATH, get_connection, initialize_schema
from .models import HistoryEntry, UsageRecord

# Only the newest entries are kept
MAX_HISTORY_ENTRIES = 100


class HistoryStore(ABC):
    """Durable store of saved prompts and responses."""

    @abstractmethod
    def append(self, entry: HistoryEntry) -> None:
        """Add an entry, evicting the oldest beyond MAX_HISTORY_ENTRIES."""

    @abstractmethod
    def list(self) -> List[HistoryEntry]:
        """Return all entries, newest first."""

    @abstractmethod
    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        """Return one entry, or None if it does not exist."""

    @abstractmethod
    def remove(self, entry_id: str) -> bool:
        """Delete an entry. Returns whether anything was removed."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every entry."""

    @abstractmethod
    def _replace(self, entry: HistoryEntry) -> None:
        """Overwrite a stored entry with an updated copy."""

    def add_tag(self, entry_id: str, tag: str) -> Optional[HistoryEntry]:
        """Tag an entry. Returns the updated entry, or None if missing."""
        entry = self.get(entry_id)
        if entry is None:
            return None
        updated = entry.with_tag(tag)
        self._replace(updated)
        return updated

    def remove_tag(self, entry_id: str, tag: str) -> Optional[HistoryEntry]:
        """Untag an entry. Returns the updated entry, or None if missing."""
        entry = self.get(entry_id)
        if entry is None:
            return None
        updated = entry.without_tag(tag)
        self._replace(updated)
        return updated


class UsageStore(ABC):
    """Append-only ledger of usage records."""

    @abstractmethod
    def append(self, record: UsageRecord) -> None:
        """Add a record to the ledger."""

    @abstractmethod
    def list(self) -> List[UsageRecord]:
        """Return all records in insertion order."""

    @abstractmethod
    def clear(self) -> None:
        """Delete every record."""

    def by_date(self, start_date: str, end_date: str) -> List[UsageRecord]:
        """Records whose ISO date falls within [start_date, end_date]."""
        return [r for r in self.list() if start_date <= r.date <= end_date]

    def by_model(self, model: str) -> List[UsageRecord]:
        """Records for a specific model."""
        return [r for r in self.list() if r.model == model]

    def totals(self, records: Optional[List[UsageRecord]] = None) -> Dict[str, float]:
        """Sum tokens and cost across records (all records by default)."""
        if records is None:
            records = self.list()
        return {
            "requests": len(records),
            "prompt_tokens": sum(r.prompt_tokens for r in records),
            "completion_tokens": sum(r.completion_tokens for r in records),
            "total_tokens": sum(r.total_tokens for r in records),
            "estimated_cost": sum(r.estimated_cost for r in records),
        }


class InMemoryHistoryStore(HistoryStore):
    """History store held in process memory."""

    def __init__(self):
        self._entries: List[HistoryEntry] = []

    def append(self, entry: HistoryEntry) -> None:
        self._entries = [entry] + self._entries[:MAX_HISTORY_ENTRIES - 1]

    def list(self) -> List[HistoryEntry]:
        return list(self._entries)

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        return next((e for e in self._entries if e.id == entry_id), None)

    def remove(self, entry_id: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        return len(self._entries) != before

    def clear(self) -> None:
        self._entries = []

    def _replace(self, entry: HistoryEntry) -> None:
        self._entries = [entry if e.id == entry.id else e for e in self._entries]


class InMemoryUsageStore(UsageStore):
    """Usage ledger held in process memory."""

    def __init__(self):
        self._records: List[UsageRecord] = []

    def append(self, record: UsageRecord) -> None:
        self._records.append(record)

    def list(self) -> List[UsageRecord]:
        return list(self._records)

    def clear(self) -> None:
        self._records = []


class SQLiteHistoryStore(HistoryStore):
    """History store backed by the prompt_history table."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the store and make sure its schema exists.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        initialize_schema(db_path)

    def append(self, entry: HistoryEntry) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute("""
                INSERT INTO prompt_history
                (id, prompt, response, model, temperature, created_at, tags)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                entry.id,
                entry.prompt,
                entry.response,
                entry.model,
                entry.temperature,
                entry.created_at.isoformat(),
                json.dumps(list(entry.tags))
            ))
            conn.execute("""
                DELETE FROM prompt_history WHERE seq NOT IN (
                    SELECT seq FROM prompt_history ORDER BY seq DESC LIMIT ?
                )
            """, (MAX_HISTORY_ENTRIES,))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def list(self) -> List[HistoryEntry]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT id, prompt, response, model, temperature, created_at, tags
                FROM prompt_history ORDER BY seq DESC
            """)
            return [_row_to_entry(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT id, prompt, response, model, temperature, created_at, tags
                FROM prompt_history WHERE id = ?
            """, (entry_id,))
            row = cursor.fetchone()
            return _row_to_entry(row) if row else None
        finally:
            conn.close()

    def remove(self, entry_id: str) -> bool:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("DELETE FROM prompt_history WHERE id = ?", (entry_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def clear(self) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute("DELETE FROM prompt_history")
            conn.commit()
        finally:
            conn.close()

    def _replace(self, entry: HistoryEntry) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "UPDATE prompt_history SET tags = ? WHERE id = ?",
                (json.dumps(list(entry.tags)), entry.id)
            )
            conn.commit()
        finally:
            conn.close()


class SQLiteUsageStore(UsageStore):
    """Usage ledger backed by the append-only usage_record table."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the store and make sure its schema exists.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        initialize_schema(db_path)

    def append(self, record: UsageRecord) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute("""
                INSERT INTO usage_record
                (date, model, prompt_tokens, completion_tokens,
                 total_tokens, estimated_cost)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                record.date,
                record.model,
                record.prompt_tokens,
                record.completion_tokens,
                record.total_tokens,
                record.estimated_cost
            ))
            conn.commit()
        finally:
            conn.close()

    def list(self) -> List[UsageRecord]:
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute("""
                SELECT date, model, prompt_tokens, completion_tokens,
                       total_tokens, estimated_cost
                FROM usage_record ORDER BY id
            """)
            return [
                UsageRecord(
                    date=row[0],
                    model=row[1],
                    prompt_tokens=row[2],
                    completion_tokens=row[3],
                    total_tokens=row[4],
                    estimated_cost=row[5]
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    def clear(self) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute("DELETE FROM usage_record")
            conn.commit()
        finally:
            conn.close()


def _row_to_entry(row) -> HistoryEntry:
    return HistoryEntry(
        id=row[0],
        prompt=row[1],
        response=row[2],
        model=row[3],
        temperature=row[4],
        created_at=datetime.fromisoformat(row[5]),
        tags=tuple(json.loads(row[6]))
    )
