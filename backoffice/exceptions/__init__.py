"""Custom exceptions for the retail back office."""


class BackofficeError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class ValidationError(BackofficeError):
    """Malformed or out-of-range input, detected before touching storage."""
    def __init__(self, message, field=None):
        payload = {'field': field} if field else None
        super().__init__(message, 400, payload)
        self.field = field


class BusinessLogicError(BackofficeError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=409, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(BackofficeError):
    """Exception raised when a referenced resource is not found."""
    def __init__(self, entity, identifier=None, message=None):
        if message is None:
            message = f"{entity.capitalize()} not found"
            if identifier is not None:
                message = f"{entity.capitalize()} {identifier} not found"
        super().__init__(message, 404, {'entity': entity})
        self.entity = entity
        self.identifier = identifier


class InsufficientStockError(BusinessLogicError):
    """Raised when a product has less stock than requested."""
    def __init__(self, product_id, requested, available):
        message = (
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )
        super().__init__(message, status_code=409, payload={
            'product_id': product_id,
            'requested': requested,
            'available': available,
        })
        self.product_id = product_id
        self.requested = requested
        self.available = available


class TransactionFailedError(BackofficeError):
    """A storage, lock or timeout failure not otherwise classified."""
    retryable = False

    def __init__(self, cause, message="Transaction failed", status_code=500):
        super().__init__(f"{message}: {cause}", status_code, {'retryable': self.retryable})
        self.cause = cause


class LockTimeoutError(TransactionFailedError):
    """Waiting on a row lock exceeded the configured bound, or a deadlock was broken."""
    retryable = True

    def __init__(self, cause):
        super().__init__(cause, message="Timed out waiting for a row lock", status_code=503)
