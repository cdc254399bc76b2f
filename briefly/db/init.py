"""Database initialization and schema management."""

from typing import Any, Dict

import psycopg
from rich.console import Console

from .connection import get_connection

console = Console()


SCHEMA_SQL = """
-- Cache entries table
CREATE TABLE IF NOT EXISTS cache_entries (
    cache_key TEXT PRIMARY KEY,
    kind TEXT NOT NULL CHECK (kind IN ('content', 'summary')),
    subject_url TEXT NOT NULL,
    content_hash TEXT,
    payload JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    ttl_class TEXT NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

-- Create indexes
CREATE INDEX IF NOT EXISTS idx_cache_entries_kind_created ON cache_entries(kind, created_at);
CREATE INDEX IF NOT EXISTS idx_cache_entries_subject_url ON cache_entries(subject_url);
"""


def validate_connection(config: Dict[str, Any]) -> bool:
    """Validate database connection."""
    try:
        with get_connection(config) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                result = cur.fetchone()
                return result is not None and result["ok"] == 1
    except psycopg.Error as e:
        console.print(f"[red]Database connection failed: {e}[/red]")
        return False


def init_database(config: Dict[str, Any]) -> None:
    """Initialize database schema."""
    with get_connection(config) as conn:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
