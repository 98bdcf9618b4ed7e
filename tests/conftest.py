"""
Shared pytest fixtures and configuration for closurekit tests.

This module provides:
- Settings cache reset between tests (environment overrides stay local)
- structlog reset so log capture works in every test
"""

import sys
from pathlib import Path
from typing import Generator

import pytest
import structlog

# Ensure closurekit package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from closurekit.core.settings import reset_settings


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Re-read settings for every test so monkeypatched env vars apply."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo any ``configure_logging`` call made by a test."""
    yield
    structlog.reset_defaults()

