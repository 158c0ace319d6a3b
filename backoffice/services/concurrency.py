"""
Transaction helpers for the operations that take row locks.

No automatic retry: a lock failure is reported to the caller as a retryable
error and the caller decides whether to resubmit.
"""
import logging

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError

from backoffice.database import apply_lock_timeout, is_lock_failure
from backoffice.exceptions import BackofficeError, TransactionFailedError, LockTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT_SECONDS = 5


def lock_for_update(query):
    """
    Apply an exclusive row lock and refresh already-loaded instances.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the write lock is taken
    by BEGIN IMMEDIATE when the transaction starts (see database.init_db).
    """
    return query.with_for_update().populate_existing()


def configured_lock_timeout():
    if has_app_context():
        return current_app.config.get('LOCK_TIMEOUT_SECONDS', DEFAULT_LOCK_TIMEOUT_SECONDS)
    return DEFAULT_LOCK_TIMEOUT_SECONDS


def run_locked_transaction(session, operation, description, lock_timeout=None):
    """
    Run operation(session) as one unit of work and commit it.

    Any failure rolls the whole unit back. Application errors propagate as
    they are; lock waits that expire become LockTimeoutError and every other
    storage or unexpected error becomes TransactionFailedError.
    """
    if lock_timeout is None:
        lock_timeout = configured_lock_timeout()

    try:
        apply_lock_timeout(session, lock_timeout)
        result = operation(session)
        session.commit()
        return result

    except BackofficeError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        if is_lock_failure(e):
            logger.warning(f"{description}: lock wait failed: {e}")
            raise LockTimeoutError(e) from e
        logger.exception(f"{description}: storage error")
        raise TransactionFailedError(e) from e
    except Exception as e:
        session.rollback()
        logger.exception(f"{description}: unexpected error")
        raise TransactionFailedError(e) from e
