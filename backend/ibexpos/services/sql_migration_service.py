"""
SQL Migration Runner

Applies hand-written *.sql files from SQL_MIGRATIONS_DIR in file-name order.
Each file is split on "--> statement-breakpoint". Leading "--" comment lines
are dropped from each chunk and chunks left empty are skipped. Applied files
are recorded in sql_migrations, so running again only picks up new files.

A file is applied and recorded in one transaction: if any statement fails
the whole file is rolled back and the run stops there.
"""

from __future__ import annotations

import logging
import os

from flask import current_app

from ..extensions import db
from ..models import AppliedSqlMigration

logger = logging.getLogger(__name__)

STATEMENT_BREAKPOINT = "--> statement-breakpoint"


def _strip_leading_comments(chunk: str) -> str:
    lines = chunk.strip().splitlines()
    while lines and (not lines[0].strip() or lines[0].lstrip().startswith("--")):
        lines.pop(0)
    return "\n".join(lines).strip()


def split_statements(sql: str) -> list[str]:
    statements = []
    for chunk in sql.split(STATEMENT_BREAKPOINT):
        chunk = _strip_leading_comments(chunk)
        if chunk:
            statements.append(chunk)
    return statements


def migrations_dir() -> str:
    return current_app.config["SQL_MIGRATIONS_DIR"]


def list_migration_files(directory: str | None = None) -> list[str]:
    directory = directory or migrations_dir()
    if not os.path.isdir(directory):
        return []
    return sorted(name for name in os.listdir(directory) if name.endswith(".sql"))


def applied_names() -> set[str]:
    AppliedSqlMigration.__table__.create(bind=db.engine, checkfirst=True)
    return {row.name for row in db.session.query(AppliedSqlMigration.name).all()}


def status(directory: str | None = None) -> list[dict]:
    done = applied_names()
    return [{"name": name, "applied": name in done} for name in list_migration_files(directory)]


def apply_pending(directory: str | None = None) -> dict:
    """Returns {"applied": [file names], "skipped": count already applied}."""
    directory = directory or migrations_dir()
    files = list_migration_files(directory)
    if not files:
        logger.info("No SQL migrations found in %s", directory)
        return {"applied": [], "skipped": 0}

    done = applied_names()
    applied = []
    skipped = 0

    for name in files:
        if name in done:
            skipped += 1
            continue

        with open(os.path.join(directory, name), encoding="utf-8") as handle:
            statements = split_statements(handle.read())

        logger.info("Applying SQL migration %s (%d statements)", name, len(statements))
        try:
            for statement in statements:
                db.session.connection().exec_driver_sql(statement)
            db.session.add(AppliedSqlMigration(name=name))
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.exception("SQL migration %s failed", name)
            raise
        applied.append(name)

    logger.info("SQL migrations: %d applied, %d already applied", len(applied), skipped)
    return {"applied": applied, "skipped": skipped}
