"""
Check whether the database schema has been applied.
Usage: python -m booking_platform.check_db [env_file]

Prints one of MISSING_CREDENTIALS, ERROR:<message> (followed by
SCHEMA_MISSING when the table does not exist) or SCHEMA_PRESENT.
"""
import os
import sys

import dotenv
from sqlalchemy import create_engine, func, select, table
from sqlalchemy.exc import SQLAlchemyError

DEFAULT_ENV_FILE = ".env.local"
CHECK_TABLE = "profiles"

_UNDEFINED_TABLE_MARKERS = ("no such table", "does not exist", "doesn't exist", "undefined table")


def _is_undefined_table(exc: SQLAlchemyError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == "42P01" or getattr(orig, "sqlstate", None) == "42P01":
        return True
    message = str(orig or exc).lower()
    return any(marker in message for marker in _UNDEFINED_TABLE_MARKERS)


def _error_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    message = str(orig) if orig is not None else str(exc)
    return message.strip().splitlines()[0] if message.strip() else exc.__class__.__name__


def load_database_url(env_file: str) -> str | None:
    values = dotenv.dotenv_values(env_file) if os.path.exists(env_file) else {}
    return values.get("DATABASE_URL") or os.getenv("DATABASE_URL")


def check_schema(database_url: str | None, table_name: str = CHECK_TABLE) -> list[str]:
    if not database_url:
        return ["MISSING_CREDENTIALS"]

    engine = None
    try:
        engine = create_engine(database_url)
        with engine.connect() as conn:
            conn.execute(select(func.count()).select_from(table(table_name)))
    except SQLAlchemyError as exc:
        lines = [f"ERROR:{_error_message(exc)}"]
        if _is_undefined_table(exc):
            lines.append("SCHEMA_MISSING")
        return lines
    except ImportError as exc:
        # DBAPI driver for the URL's dialect is not installed
        return [f"ERROR:{exc}"]
    finally:
        if engine is not None:
            engine.dispose()
    return ["SCHEMA_PRESENT"]


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    env_file = argv[0] if argv else DEFAULT_ENV_FILE
    lines = check_schema(load_database_url(env_file))
    for line in lines:
        print(line)
    return 1 if lines == ["MISSING_CREDENTIALS"] else 0


if __name__ == "__main__":
    sys.exit(main())
