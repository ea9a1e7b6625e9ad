"""Pytest configuration."""

import os

# The application engine is created at import time; keep it in memory
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "CRITICAL")
