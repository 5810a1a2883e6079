# ruff: noqa: INP001
"""Pytest configuration shared across backend tests."""

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read at import time; pin deterministic values regardless of shell env.
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_ACCESS_TOKEN"] = "test-access-token-secret-0123456789-abcdef"
os.environ["JWT_SECRET_INVITE_TOKEN"] = "test-invite-token-secret-0123456789-abcdef"
