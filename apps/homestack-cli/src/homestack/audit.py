"""Operation trail for mutating commands, kept as JSONL and in SQLite."""

from __future__ import annotations

import getpass
import logging
import os
import socket
import sqlite3
import time
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Generator

from homestack_common import AuditEvent, HomestackConfig

from homestack.config import get_config
from homestack.console import warn

log = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    host TEXT NOT NULL,
    actor TEXT NOT NULL,
    action TEXT NOT NULL,
    target TEXT NOT NULL DEFAULT '',
    params TEXT NOT NULL DEFAULT '{}',
    result TEXT NOT NULL DEFAULT 'success',
    error TEXT,
    duration_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_logs(timestamp);
CREATE INDEX IF NOT EXISTS idx_audit_action ON audit_logs(action);
"""

_INSERT = """INSERT INTO audit_logs
   (timestamp, host, actor, action, target, params, result, error, duration_ms)
   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)"""


def current_actor() -> str:
    # SUDO_USER keeps the real operator visible when run through sudo
    return os.environ.get("HOMESTACK_ACTOR") or os.environ.get("SUDO_USER") or getpass.getuser()


class AuditTrail:
    """Appends events to a JSONL file and an SQLite table.

    Writing is best effort: a log that cannot be written (for example one
    left owned by root after ``sudo homestack setup``) produces a warning and
    never replaces the outcome of the command being audited.
    """

    def __init__(self, jsonl_path: Path, db_path: Path) -> None:
        self.jsonl_path = jsonl_path
        self.db_path = db_path

    @classmethod
    def from_config(cls, cfg: HomestackConfig) -> "AuditTrail":
        return cls(cfg.audit_jsonl_path, cfg.audit_db_path)

    def record(self, event: AuditEvent) -> bool:
        """Write ``event`` to both stores. Returns False if either write failed."""
        try:
            self.append_jsonl(event)
            self.insert_row(event)
        except (OSError, sqlite3.Error) as exc:
            log.debug("audit write failed for %s", event.action, exc_info=True)
            warn(f"Audit log not written for '{event.action}': {exc}")
            return False
        return True

    def append_jsonl(self, event: AuditEvent) -> None:
        self.jsonl_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.jsonl_path, "a") as f:
            f.write(event.to_jsonl() + "\n")

    def insert_row(self, event: AuditEvent) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(sqlite3.connect(str(self.db_path))) as conn:
            conn.executescript(_SCHEMA)
            with conn:
                conn.execute(
                    _INSERT,
                    (
                        event.timestamp.isoformat(),
                        event.host,
                        event.actor,
                        event.action,
                        event.target,
                        event.model_dump_json(include={"params"}),
                        event.result,
                        event.error,
                        event.duration_ms,
                    ),
                )


@contextmanager
def audit(action: str, target: str = "", **params: Any) -> Generator[AuditEvent, None, None]:
    """Time the wrapped block and record it as success or failure."""
    event = AuditEvent(
        host=socket.gethostname(),
        actor=current_actor(),
        action=action,
        target=target,
        params=params,
    )
    start = time.monotonic()
    try:
        yield event
    except Exception as exc:
        event.result = "failure"
        event.error = str(exc)
        raise
    finally:
        event.duration_ms = int((time.monotonic() - start) * 1000)
        AuditTrail.from_config(get_config()).record(event)
