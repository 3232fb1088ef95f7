# backend/app/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import admin_bookings, health, webhooks_paystack

__all__ = [
    "admin_bookings",
    "health",
    "webhooks_paystack",
]
