"""
Exception Classes - Strongly typed exception hierarchy.

Each error kind maps to exactly one HTTP outcome; see the handlers in
``activation_relay.main``.
"""


class RelayError(Exception):
    """Base exception for all relay errors."""

    pass


class BadRequestError(RelayError):
    """Raised when caller input is missing or invalid."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class WebhookVerificationError(RelayError):
    """Raised when a webhook signature cannot be verified."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Webhook verification error: {message}")


class PaymentProviderError(RelayError):
    """Raised when a payment provider operation fails."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Payment provider error: {message}")


class ProviderNotConfiguredError(PaymentProviderError):
    """Raised when the payment provider is missing a key, secret or price."""

    def __init__(self, missing: str) -> None:
        self.missing = missing
        super().__init__(f"{missing} is not configured")


class DownstreamForwardError(RelayError):
    """Raised when the game-server receiver cannot be reached or rejects a forward."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"Downstream forward failed ({status_code}): {message}")
        else:
            super().__init__(f"Downstream forward failed: {message}")
