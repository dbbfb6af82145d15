"""
Errors raised by the intake pipeline.

Everything up to (and including) saving the local order is strict and
aborts the request. UpstreamSyncError is the exception: the sync
orchestrator catches it and the request still succeeds.
"""


class CodFormError(Exception):
    default_message = "COD form error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CodFormError):
    """Bad submission. The message is a short reason such as "shop required"."""

    default_message = "invalid submission"


class MerchantNotFound(CodFormError):
    default_message = "Store not found"


class FormDisabled(CodFormError):
    default_message = "COD form is disabled"


class QuotaExceeded(CodFormError):
    default_message = "Order limit reached. Please upgrade your plan."


class OrderNotFound(CodFormError):
    default_message = "Order not found"


class StorageError(CodFormError):
    default_message = "Storage failure"


class UpstreamSyncError(CodFormError):
    default_message = "Shopify sync failed"
