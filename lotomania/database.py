import json
import os
import sqlite3
import threading
import time
from datetime import datetime
from typing import Dict, Optional

from loguru import logger

from lotomania.config import LATEST_TTL_SECONDS, get_settings, resolve_path
from lotomania.models import Draw

_locks_guard = threading.Lock()
_contest_locks: Dict[str, threading.Lock] = {}


def _lock_for(key: str) -> threading.Lock:
    with _locks_guard:
        if key not in _contest_locks:
            _contest_locks[key] = threading.Lock()
        return _contest_locks[key]


def get_db_path() -> str:
    """Reads the database file path from the configuration file."""
    db_file = get_settings().db_file
    db_path = resolve_path(db_file)

    # Ensure the directory for the database exists
    os.makedirs(os.path.dirname(db_path), exist_ok=True)
    return db_path


def get_db_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """
    Establishes a connection to the SQLite database.

    Returns:
        sqlite3.Connection: A connection object to the database.
    """
    db_path = db_path or get_db_path()
    try:
        conn = sqlite3.connect(db_path)
        logger.debug(f"Connected to database at {db_path}")
        return conn
    except sqlite3.Error as e:
        logger.error(f"Error connecting to database at {db_path}: {e}")
        raise


def initialize_database(db_path: Optional[str] = None) -> bool:
    """Creates the result cache tables if they don't exist."""
    try:
        with get_db_connection(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS draw_results (
                    concurso INTEGER PRIMARY KEY,
                    payload TEXT NOT NULL,
                    cached_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS latest_result (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    payload TEXT NOT NULL,
                    cached_at_epoch REAL NOT NULL
                )
            """)
            conn.commit()
        logger.info("Result cache tables initialized.")
        return True
    except sqlite3.Error as e:
        logger.error(f"Error initializing database: {e}")
        return False


def get_cached_result(concurso: int, db_path: Optional[str] = None) -> Optional[Draw]:
    """
    Returns the cached draw for a contest, or None on a miss.

    Per-contest entries never expire. A read error counts as a miss.
    """
    try:
        with get_db_connection(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT payload FROM draw_results WHERE concurso = ?", (int(concurso),))
            row = cursor.fetchone()
        if row is None:
            return None
        logger.debug(f"Cache hit for contest {concurso}")
        return Draw.from_dict(json.loads(row[0]))
    except (sqlite3.Error, ValueError, KeyError) as e:
        logger.error(f"Error reading cached contest {concurso}: {e}")
        return None


def set_cached_result(draw: Draw, db_path: Optional[str] = None) -> bool:
    """Stores a draw under its contest number. Returns False on failure."""
    if draw.concurso is None:
        logger.warning("Draw without contest number not cached.")
        return False
    with _lock_for(str(draw.concurso)):
        try:
            with get_db_connection(db_path) as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO draw_results (concurso, payload, cached_at) VALUES (?, ?, ?)",
                    (draw.concurso, json.dumps(draw.to_dict()), datetime.now().isoformat()),
                )
                conn.commit()
            logger.debug(f"Contest {draw.concurso} cached.")
            return True
        except sqlite3.Error as e:
            logger.error(f"Error caching contest {draw.concurso}: {e}")
            return False


def get_cached_latest_result(
    ttl_seconds: int = LATEST_TTL_SECONDS,
    db_path: Optional[str] = None,
    now: Optional[float] = None,
) -> Optional[Draw]:
    """
    Returns the cached latest draw if younger than ttl_seconds.

    An expired entry is deleted and reported as a miss.
    """
    now = time.time() if now is None else now
    try:
        with get_db_connection(db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT payload, cached_at_epoch FROM latest_result WHERE id = 1")
            row = cursor.fetchone()
            if row is None:
                return None
            payload, cached_at = row
            if now - cached_at > ttl_seconds:
                logger.info("Cached latest result expired.")
                conn.execute("DELETE FROM latest_result WHERE id = 1")
                conn.commit()
                return None
        return Draw.from_dict(json.loads(payload))
    except (sqlite3.Error, ValueError, KeyError) as e:
        logger.error(f"Error reading cached latest result: {e}")
        return None


def set_cached_latest_result(draw: Draw, db_path: Optional[str] = None, now: Optional[float] = None) -> bool:
    """Stores the latest draw and, when it has a contest number, its per-contest entry."""
    now = time.time() if now is None else now
    with _lock_for("latest"):
        try:
            with get_db_connection(db_path) as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO latest_result (id, payload, cached_at_epoch) VALUES (1, ?, ?)",
                    (json.dumps(draw.to_dict()), now),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error caching latest result: {e}")
            return False
    if draw.concurso is not None:
        set_cached_result(draw, db_path)
    return True
