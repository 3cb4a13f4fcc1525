"""Pytest configuration for dataknobs_forms tests."""

import os
import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dataknobs_forms import configure  # noqa: E402


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Every test starts from default settings and a clean environment."""
    for key in list(os.environ):
        if key.startswith("DATAKNOBS_FORMS__"):
            monkeypatch.delenv(key)
    configure()
    yield
    configure()


@pytest.fixture
def signup_description():
    """Signup form description in the JSON description format."""
    return {
        "name": "signup",
        "fields": {
            "email": {
                "type": "email",
                "required": True,
                "trim": True,
                "lowercase": True,
                "requiredErrorMessage": "Email is required.",
            },
            "password": {"type": "password", "required": True, "minLength": 8},
            "age": {"type": "number", "required": True, "min": 18, "max": 120},
            "gender": {
                "type": "radio",
                "options": ["male", "female", "other"],
            },
            "terms": {"type": "checkbox", "required": True},
        },
    }


@pytest.fixture
def valid_signup():
    return {
        "email": "  Ann@Example.COM ",
        "password": "s3cret-pass",
        "age": "30",
        "gender": "female",
        "terms": True,
    }
