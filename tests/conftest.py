"""Shared fixtures."""

import pytest

from fakes import FakeSFMC
from sfmc_graph.core.config import SFMCConfig


@pytest.fixture
def config() -> SFMCConfig:
    """Config with retry delays disabled."""
    return SFMCConfig(
        subdomain="mc-test",
        access_token="token-123",
        retry_delay=0,
        max_retry_delay=0,
    )


@pytest.fixture
def fake_sfmc() -> FakeSFMC:
    return FakeSFMC()
