from __future__ import annotations


class LeadValidationError(Exception):
    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ContactFormError(Exception):
    def __init__(self, message: str = "Missing required form data", status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ContactDeliveryError(Exception):
    """Raised when the transactional email provider rejects or fails a send."""


class ContentStoreError(Exception):
    def __init__(self, message: str, status_code: int = 503) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)
