# Overview: Transaction helpers shared by the service layer.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """Row lock for stock, balance and subscription writes. A no-op on SQLite."""
    return query.with_for_update()


def run_with_retry(
    func,
    *,
    attempts: int = 3,
    backoff_base: float = 0.1,
    fixed: bool = False,
    retry_on: tuple = TRANSIENT_ERRORS,
):
    """
    Run ``func`` as one unit of work and return its result.

    A sale, a purchase or a balance top-up touches several rows; any failure
    rolls the whole session back. Errors in ``retry_on`` (dropped
    connections, deadlocks, version conflicts) are retried up to
    ``attempts`` times, sleeping ``backoff_base`` between tries, doubled on
    each try unless ``fixed``. The last error is re-raised.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except retry_on as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            logger.warning("Retrying after %s (attempt %d/%d)", type(exc).__name__, attempt, attempts)
            time.sleep(backoff_base if fixed else backoff_base * 2 ** (attempt - 1))
        except Exception:
            db.session.rollback()
            raise
