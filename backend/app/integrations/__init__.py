"""External service integrations for the booking engine."""

from .paystack_client import FakePaystackClient, PaystackClient, PaystackError

__all__ = ["FakePaystackClient", "PaystackClient", "PaystackError"]
