"""
Storage layer for Roll Enhancements.

RollStorage provides the database interface for persisting and querying
settings, item documents, chat messages and events. It wraps SQLite.
"""

import sqlite3
import json
from datetime import datetime
from typing import List, Optional, Dict, Any

from .models import ChatMessage, Event, utcnow


SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    modified_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS items (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    data TEXT NOT NULL,
    modified_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS chat_messages (
    id TEXT PRIMARY KEY,
    user TEXT,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS events (
    event_id TEXT PRIMARY KEY,
    timestamp TEXT NOT NULL,
    event_type TEXT NOT NULL,
    item_id TEXT,
    actor_id TEXT,
    data TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_events_type ON events(event_type);
CREATE INDEX IF NOT EXISTS idx_messages_created ON chat_messages(created_at);
"""


class RollStorage:
    """
    Manages the SQLite database behind a roll host.

    Attributes:
        db_path: Path to SQLite database file
        conn: Database connection (None until initialize() is called)
    """

    def __init__(self, db_path: str):
        """
        Initialize storage.

        Args:
            db_path: Path to SQLite database file
                    Use ':memory:' for in-memory testing database
        """
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None

    def initialize(self) -> None:
        """Open the database connection and create tables if they don't exist."""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    # ========== Settings ==========

    def get_setting(self, key: str) -> Optional[Any]:
        """
        Get a stored setting value.

        Returns:
            Decoded value, or None if the setting was never stored
        """
        row = self.conn.execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return json.loads(row['value'])

    def set_setting(self, key: str, value: Any) -> None:
        """Store a setting value (JSON encoded)."""
        self.conn.execute("""
            INSERT OR REPLACE INTO settings (key, value, modified_at)
            VALUES (?, ?, ?)
        """, (key, json.dumps(value), utcnow().isoformat()))
        self.conn.commit()

    def list_settings(self) -> Dict[str, Any]:
        """Return every stored setting."""
        cursor = self.conn.execute("SELECT key, value FROM settings ORDER BY key")
        return {row['key']: json.loads(row['value']) for row in cursor.fetchall()}

    # ========== Items ==========

    def save_item(self, item_id: str, name: str, data: Dict[str, Any]) -> bool:
        """
        Save or update an item document.

        Args:
            item_id: Item identifier
            name: Item name (denormalized for listing)
            data: Full item document

        Returns:
            True if successful
        """
        try:
            self.conn.execute("""
                INSERT OR REPLACE INTO items (id, name, data, modified_at)
                VALUES (?, ?, ?, ?)
            """, (item_id, name, json.dumps(data), utcnow().isoformat()))
            self.conn.commit()
            return True
        except sqlite3.Error:
            return False

    def get_item(self, item_id: str) -> Optional[Dict[str, Any]]:
        """Get an item document by ID."""
        row = self.conn.execute(
            "SELECT data FROM items WHERE id = ?", (item_id,)
        ).fetchone()
        if row is None:
            return None
        return json.loads(row['data'])

    def list_items(self) -> List[Dict[str, Any]]:
        """List all item documents ordered by name."""
        cursor = self.conn.execute("SELECT data FROM items ORDER BY name")
        return [json.loads(row['data']) for row in cursor.fetchall()]

    # ========== Chat messages ==========

    def save_message(self, message: ChatMessage) -> None:
        """Persist a chat message. Messages are insert-only."""
        self.conn.execute("""
            INSERT INTO chat_messages (id, user, data, created_at)
            VALUES (?, ?, ?, ?)
        """, (
            message.id,
            message.user,
            json.dumps(message.data),
            message.created_at.isoformat()
        ))
        self.conn.commit()

    def get_message(self, message_id: str) -> Optional[ChatMessage]:
        """Get a chat message by ID."""
        row = self.conn.execute(
            "SELECT id, user, data, created_at FROM chat_messages WHERE id = ?",
            (message_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_message(row)

    def list_messages(self, limit: int = 50) -> List[ChatMessage]:
        """
        List chat messages.

        Args:
            limit: Maximum number of messages to return

        Returns:
            Messages in creation order, oldest first
        """
        cursor = self.conn.execute("""
            SELECT id, user, data, created_at FROM (
                SELECT rowid, id, user, data, created_at FROM chat_messages
                ORDER BY rowid DESC LIMIT ?
            ) ORDER BY rowid ASC
        """, (limit,))
        return [self._row_to_message(row) for row in cursor.fetchall()]

    def count_messages(self) -> int:
        """Count all chat messages."""
        return self.conn.execute("SELECT COUNT(*) FROM chat_messages").fetchone()[0]

    # ========== Event Operations ==========

    def log_event(self, event: Event) -> None:
        """
        Log an event to the database.

        Args:
            event: Event to log
        """
        self.conn.execute("""
            INSERT INTO events
            (event_id, timestamp, event_type, item_id, actor_id, data)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            event.event_id,
            event.timestamp.isoformat(),
            event.event_type,
            event.item_id,
            event.actor_id,
            json.dumps(event.data)
        ))
        self.conn.commit()

    def get_events(self, item_id: Optional[str] = None,
                   event_type: Optional[str] = None,
                   limit: int = 100) -> List[Event]:
        """
        Retrieve event history.

        Args:
            item_id: Filter by item (optional)
            event_type: Filter by event type (optional)
            limit: Maximum number of events to return

        Returns:
            List of events, most recent first
        """
        query = "SELECT event_id, timestamp, event_type, item_id, actor_id, data FROM events"
        params = []
        where_clauses = []

        if item_id:
            where_clauses.append("item_id = ?")
            params.append(item_id)

        if event_type:
            where_clauses.append("event_type = ?")
            params.append(event_type)

        if where_clauses:
            query += " WHERE " + " AND ".join(where_clauses)

        query += " ORDER BY rowid DESC LIMIT ?"
        params.append(limit)

        cursor = self.conn.execute(query, params)

        return [
            Event(
                event_id=row['event_id'],
                timestamp=datetime.fromisoformat(row['timestamp']),
                event_type=row['event_type'],
                item_id=row['item_id'],
                actor_id=row['actor_id'],
                data=json.loads(row['data'])
            )
            for row in cursor.fetchall()
        ]

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> ChatMessage:
        return ChatMessage(
            id=row['id'],
            data=json.loads(row['data']),
            created_at=datetime.fromisoformat(row['created_at'])
        )
