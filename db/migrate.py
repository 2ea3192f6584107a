from __future__ import annotations

import hashlib
import importlib.util
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path


MIGRATION_RE = re.compile(r"^(\d{4})_([a-zA-Z0-9_]+)\.(sql|py)$")


class MigrationError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class MigrationFile:
    version: str
    name: str
    ext: str
    path: Path

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.path.read_bytes()).hexdigest()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _ensure_migration_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            checksum TEXT NOT NULL,
            applied_at_utc TEXT NOT NULL
        )
        """
    )
    conn.commit()


def _applied_versions(conn: sqlite3.Connection) -> dict[str, tuple[str, str]]:
    rows = conn.execute("SELECT version, name, checksum FROM schema_migrations").fetchall()
    return {str(version): (str(name), str(checksum)) for version, name, checksum in rows}


def discover_migrations(migrations_dir: str | Path) -> list[MigrationFile]:
    base = Path(migrations_dir)
    if not base.is_dir():
        raise MigrationError(f"Migrations directory not found: {migrations_dir}")
    found: list[MigrationFile] = []
    for path in sorted(base.iterdir()):
        m = MIGRATION_RE.match(path.name)
        if not path.is_file() or not m:
            continue
        found.append(MigrationFile(version=m.group(1), name=m.group(2), ext=m.group(3), path=path))
    return found


def _run_py_migration(conn: sqlite3.Connection, path: Path) -> None:
    spec = importlib.util.spec_from_file_location(f"gohan_migration_{path.stem}", str(path))
    if spec is None or spec.loader is None:
        raise MigrationError(f"Could not load migration module: {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    upgrade = getattr(module, "upgrade", None)
    if not callable(upgrade):
        raise MigrationError(f"Python migration missing upgrade(conn): {path}")
    upgrade(conn)


def apply_sqlite_migrations(conn: sqlite3.Connection, migrations_dir: str | Path) -> list[str]:
    """Apply pending migrations in version order and return the versions applied.

    A version that was already applied must still match its recorded name and
    checksum; editing an applied migration is an error.
    """
    _ensure_migration_table(conn)
    applied = _applied_versions(conn)
    newly_applied: list[str] = []

    for migration in discover_migrations(migrations_dir):
        checksum = migration.checksum
        existing = applied.get(migration.version)
        if existing:
            old_name, old_checksum = existing
            if old_name != migration.name or old_checksum != checksum:
                raise MigrationError(
                    f"Migration version {migration.version} already applied with different content "
                    f"(existing name={old_name}, file name={migration.name})."
                )
            continue

        print(f"[DB] Applying migration {migration.path.name}")
        if migration.ext == "sql":
            conn.executescript(migration.path.read_text(encoding="utf-8"))
        else:
            _run_py_migration(conn, migration.path)

        conn.execute(
            "INSERT INTO schema_migrations (version, name, checksum, applied_at_utc) VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, checksum, _utc_now_iso()),
        )
        conn.commit()
        newly_applied.append(migration.version)

    return newly_applied


def list_schema_migrations_sync(conn: sqlite3.Connection, limit: int = 200) -> list[tuple[str, str, str]]:
    try:
        return conn.execute(
            "SELECT version, name, applied_at_utc FROM schema_migrations ORDER BY version DESC LIMIT ?",
            (max(1, min(int(limit), 500)),),
        ).fetchall()
    except sqlite3.OperationalError:
        return []
