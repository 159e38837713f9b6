"""Database connection and schema migrations from a directory of SQL files."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from helphub.logger import Logger

_MAX_CONNECTIONS = 1000
_SCHEME_ALIASES = {
    "postgres": "postgresql",
    "cockroach": "postgresql",
    "cockroachdb": "postgresql",
}
_MIGRATION_FILE = re.compile(r"^([0-9]+)_(.*)\.(down|up)\.(.*)$")
_VERSION_TABLE = "schema_migrations"


class NoChange(Exception):
    """Raised when there is no migration left to apply."""


def _engine_url(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if sep and scheme in _SCHEME_ALIASES:
        return f"{_SCHEME_ALIASES[scheme]}://{rest}"
    return url


def init_db(url: str, log: Logger) -> Engine:
    """Create the database engine for ``url``; exit through ``log`` on failure."""
    try:
        parsed = make_url(_engine_url(url))
        if parsed.get_backend_name() == "sqlite":
            return create_engine(parsed)
        return create_engine(parsed, pool_size=_MAX_CONNECTIONS)
    except (ArgumentError, ImportError, ValueError, TypeError) as exc:
        log.fatal(None, f"Failed to connect to database: {exc}")


def migration_url(conn: str) -> str:
    """Return the migration URL for the database URL ``conn``."""
    parts = conn.split("://")
    if len(parts) < 2:
        raise ValueError(f"database url {conn!r} has no scheme")
    return f"cockroach://{parts[1]}"


@dataclass(frozen=True)
class _Migration:
    version: int
    identifier: str
    path: Path


def _read_migrations(directory: Path) -> list[_Migration]:
    found: dict[int, _Migration] = {}
    for entry in directory.iterdir():
        match = _MIGRATION_FILE.match(entry.name)
        if not match or match.group(3) != "up" or not entry.is_file():
            continue
        version = int(match.group(1))
        if version in found:
            raise ValueError(f"duplicate migration file: {entry.name}")
        found[version] = _Migration(version, match.group(2), entry)
    return [found[version] for version in sorted(found)]


class Migrator:
    """Applies the ``*.up.sql`` files of a directory in version order."""

    def __init__(self, path: str | Path, url: str) -> None:
        directory = Path(path)
        if not directory.is_dir():
            raise FileNotFoundError(f"migration directory {directory} does not exist")
        self._migrations = _read_migrations(directory)
        self.engine = create_engine(_engine_url(url))
        with self.engine.begin() as conn:
            conn.execute(
                text(
                    f"CREATE TABLE IF NOT EXISTS {_VERSION_TABLE} "
                    "(version BIGINT NOT NULL PRIMARY KEY, dirty BOOLEAN NOT NULL)"
                )
            )

    def _current(self) -> tuple[int, bool] | None:
        with self.engine.connect() as conn:
            row = conn.execute(text(f"SELECT version, dirty FROM {_VERSION_TABLE} LIMIT 1")).first()
        return None if row is None else (int(row[0]), bool(row[1]))

    def _set_version(self, version: int, dirty: bool) -> None:
        with self.engine.begin() as conn:
            conn.execute(text(f"DELETE FROM {_VERSION_TABLE}"))
            conn.execute(
                text(f"INSERT INTO {_VERSION_TABLE} (version, dirty) VALUES (:version, :dirty)"),
                {"version": version, "dirty": dirty},
            )

    def _run(self, sql: str) -> None:
        if not sql.strip():
            return
        raw = self.engine.raw_connection()
        try:
            cursor = raw.cursor()
            if hasattr(cursor, "executescript"):
                cursor.executescript(sql)
            else:
                cursor.execute(sql)
            raw.commit()
        finally:
            raw.close()

    def up(self) -> None:
        """Apply every pending migration; raise :class:`NoChange` if there is none."""
        current = self._current()
        if current is not None and current[1]:
            raise RuntimeError(f"Dirty database version {current[0]}. Fix and force version.")
        start = -1 if current is None else current[0]
        pending = [migration for migration in self._migrations if migration.version > start]
        if not pending:
            raise NoChange("no change")
        for migration in pending:
            self._set_version(migration.version, True)
            self._run(migration.path.read_text(encoding="utf-8"))
            self._set_version(migration.version, False)


def initiate_migration(path: str | Path, conn: str, log: Logger) -> Migrator:
    """Create a migrator for the files in ``path``; exit through ``log`` on failure."""
    url = migration_url(conn)
    try:
        return Migrator(path, url)
    except (OSError, ValueError, ImportError, SQLAlchemyError) as exc:
        log.fatal(None, "could not create migrator", error=str(exc))


def up_migration(migrator: Migrator, log: Logger) -> None:
    """Apply pending migrations; having none is not an error."""
    try:
        migrator.up()
    except NoChange:
        return
    except Exception as exc:
        log.fatal(None, "could not migrate", error=str(exc))