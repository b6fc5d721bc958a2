class ServiceError(Exception):
    """Base class for workflow failures the routers translate to HTTP errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(ServiceError):
    status_code = 400


class RecordNotFound(ServiceError):
    status_code = 404


class PaymentProcessingError(ServiceError):
    status_code = 500

    def __init__(self, message: str = "Payment processing failed"):
        super().__init__(message)
