# backend/tests/conftest.py
"""
Pytest configuration shared by every test package.

Settings are read once at import time, so the environment is pinned here
before anything under ``app`` is imported: an in-memory SQLite database, the
in-memory Paystack client and a fixed webhook secret. Nothing in the suite
can reach a real database or the real gateway.
"""

import os
import sys

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["PAYSTACK_FAKE"] = "true"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_unit"
os.environ["PAYSTACK_WEBHOOK_SECRET"] = "whsec_unit"
os.environ.setdefault("CI", "1")

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)
