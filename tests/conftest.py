"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It ensures that the TESTING environment variable is set to prevent
loading the .env file during tests.
"""

import os

# CRITICAL: Set this before any imports that might load settings
# This prevents Pydantic from loading the .env file in tests
os.environ["TESTING"] = "true"

# Set default env vars that all tests might need
os.environ.setdefault("TRANSLATE_PROVIDER", "google")
os.environ.setdefault("TRANSLATE_API_KEY", "test-key-123")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
