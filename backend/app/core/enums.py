# backend/app/core/enums.py
"""
Core enums for the booking platform.

Roles are fixed: a booking always has exactly one client and one companion,
and admins only read. ``SYSTEM`` identifies internal callers such as the
gateway webhook handler and the expiration sweeper.
"""

from enum import Enum


class RoleName(str, Enum):
    """Actor roles recognised by the booking state machine."""

    CLIENT = "client"
    COMPANION = "companion"
    ADMIN = "admin"
    SYSTEM = "system"
