"""Shared fixtures for unit tests."""

from __future__ import annotations

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def no_rate_limit():
    """Lift the API rate limits so tests never sleep."""
    with patch("cloud_service_operator.utils.rate_limit._AWS_RATE_LIMIT_PER_SECOND", 1e9), patch(
        "cloud_service_operator.utils.rate_limit._K8S_RATE_LIMIT_PER_SECOND", 1e9
    ):
        yield
