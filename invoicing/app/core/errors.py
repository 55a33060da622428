"""Domain errors raised by services and mapped to JSON responses in main."""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvoiceValidationError(AppError):
    status_code = 400


class InvoicePolicyError(AppError):
    """Business rule violation, e.g. editing an invoice that is no longer a draft."""

    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class EmailDeliveryError(AppError):
    status_code = 500
