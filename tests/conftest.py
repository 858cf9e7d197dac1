"""Pytest configuration and fixtures."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from code_variants.config.models import LoadVariantOptions
from code_variants.parsers import parse_plain_text


@pytest.fixture
def sources() -> dict[str, Any]:
    """Map of identifier to what the fake loader returns for it."""
    return {}


@pytest.fixture
def load_source(sources: dict[str, Any]) -> AsyncMock:
    """Async loader serving the ``sources`` fixture, recording every call."""

    async def _load(url: str) -> Any:
        if url not in sources:
            raise FileNotFoundError(f"No such resource: {url}")
        return sources[url]

    return AsyncMock(side_effect=_load)


@pytest.fixture
def parse_source() -> MagicMock:
    """Plain-text parser wrapped in a mock to inspect its calls."""
    return MagicMock(side_effect=parse_plain_text)


@pytest.fixture
def raw_options(load_source: AsyncMock) -> LoadVariantOptions:
    """Options that keep sources as raw text."""
    return LoadVariantOptions(load_source=load_source, disable_parsing=True)


@pytest.fixture
def parsing_options(load_source: AsyncMock, parse_source: MagicMock) -> LoadVariantOptions:
    """Options that parse every source."""
    return LoadVariantOptions(load_source=load_source, parse_source=parse_source)
