"""
Pytest configuration and shared fixtures.
This file ensures the project root is in sys.path for imports and points the
application at an in-memory SQLite database with fixed secrets.
"""

import os
import sys
from pathlib import Path

# Must be set before app.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "testing"
os.environ["CLIENT_AUTH_SECRET"] = "test-client-auth-secret"
os.environ["SUPABASE_JWT_SECRET"] = "test-supabase-jwt-secret"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_subscriptions"
os.environ["STRIPE_PAYMENTS_WEBHOOK_SECRET"] = "whsec_test_payments"
os.environ["TRUST_PROXY"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

# Add project root to sys.path so we can import domain, services, etc.
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Tests import helpers as top-level modules (from test_fixtures import ...)
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

import pytest

from domain.models import Base, engine
from api.rate_limit import limiter
from test_fixtures import client as shared_client


@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts from empty tables and empty rate-limit counters."""
    Base.metadata.create_all(bind=engine)
    limiter.reset()
    # Cookies set by a login must not leak into the next test
    shared_client.cookies.clear()
    yield
    Base.metadata.drop_all(bind=engine)
