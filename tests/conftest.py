"""Shared fixtures: bundled task catalogue, default settings, parsers."""

import pytest

from taskweave.foundation.pipeline import Pipeline
from taskweave.foundation.registry import FunctionRegistry
from taskweave.i18n import get_catalog, set_catalog
from taskweave.parser.commandline import CommandlineParser
from taskweave.settings import Settings


@pytest.fixture
def registry() -> FunctionRegistry:
    return FunctionRegistry.default()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def parser(registry: FunctionRegistry, settings: Settings) -> CommandlineParser:
    return CommandlineParser(registry, settings, add_tool_path=False)


@pytest.fixture
def fan_out(registry: FunctionRegistry) -> Pipeline:
    """read-xml 'src' feeding three write-xml functions w1, w2, w3."""
    p = Pipeline("fan_out")
    p.add_function("read-xml", "src", registry=registry)
    for fid in ("w1", "w2", "w3"):
        p.add_function("write-xml", fid, registry=registry)
        p.connect("src", fid)
    return p


@pytest.fixture
def restore_catalog():
    catalog = get_catalog()
    yield
    set_catalog(catalog)
