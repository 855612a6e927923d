# Overview: Row locking and retry helpers shared by the stock and order write paths.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Lock the selected Inventory/Product rows until commit.

    SQLite renders no FOR UPDATE; there the Inventory version_id check is what
    serializes concurrent stock writers.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float = 0.1):
    """
    Run a unit of work, re-running it from scratch after a lost race.

    func must re-read every row it writes: the session is rolled back before
    each retry. Business errors (ValidationError, NotFoundError, ConflictError)
    propagate on the first attempt.
    """
    if attempts is None:
        attempts = current_app.config["WRITE_RETRY_ATTEMPTS"]
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt == attempts:
                current_app.logger.error("Giving up after %d attempts: %s", attempts, exc)
                raise
            current_app.logger.warning(
                "Concurrent write conflict (attempt %d/%d), retrying: %s",
                attempt, attempts, exc,
            )
            time.sleep(backoff_base * (2 ** (attempt - 1)))
