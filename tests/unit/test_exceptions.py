"""
Unit tests for the error taxonomy and lock failure classification.
"""

from sqlalchemy.exc import OperationalError, IntegrityError

from backoffice.database import is_lock_failure
from backoffice.exceptions import (
    NotFoundError, InsufficientStockError, ValidationError,
    TransactionFailedError, LockTimeoutError
)


class _FakePgError(Exception):
    def __init__(self, pgcode):
        super().__init__('lock error')
        self.pgcode = pgcode


class TestErrorPayloads:

    def test_not_found_names_entity(self):
        error = NotFoundError('inventory', 7)
        body = error.to_dict()
        assert error.status_code == 404
        assert body['entity'] == 'inventory'
        assert body['status'] == 'error'
        assert '7' in body['message']

    def test_insufficient_stock_reports_available(self):
        error = InsufficientStockError(7, 100, 7)
        body = error.to_dict()
        assert error.status_code == 409
        assert body['available'] == 7
        assert body['requested'] == 100
        assert body['product_id'] == 7

    def test_validation_error_carries_field(self):
        body = ValidationError('quantity must be a positive integer', 'quantity').to_dict()
        assert body['field'] == 'quantity'

    def test_transaction_failed_not_retryable(self):
        error = TransactionFailedError(RuntimeError('boom'))
        assert error.status_code == 500
        assert error.to_dict()['retryable'] is False
        assert 'boom' in error.message

    def test_lock_timeout_is_retryable_transaction_failure(self):
        error = LockTimeoutError(RuntimeError('lock wait'))
        assert isinstance(error, TransactionFailedError)
        assert error.status_code == 503
        assert error.to_dict()['retryable'] is True


class TestIsLockFailure:

    def test_sqlite_busy(self):
        exc = OperationalError('BEGIN IMMEDIATE', {}, Exception('database is locked'))
        assert is_lock_failure(exc) is True

    def test_postgres_lock_not_available(self):
        exc = OperationalError('SELECT', {}, _FakePgError('55P03'))
        assert is_lock_failure(exc) is True

    def test_postgres_deadlock(self):
        exc = OperationalError('UPDATE', {}, _FakePgError('40P01'))
        assert is_lock_failure(exc) is True

    def test_other_errors(self):
        assert is_lock_failure(IntegrityError('INSERT', {}, Exception('UNIQUE constraint failed'))) is False
        assert is_lock_failure(RuntimeError('database is locked')) is False
