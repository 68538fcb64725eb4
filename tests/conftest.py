"""Common fixtures for testing the error dispatcher."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from error_dispatch.dispatcher import ErrorDispatcher
from error_dispatch.screens.base import ErrorScreen
from error_dispatch.utils.output import OutputBuffers, ResponseHeaders
from fakes import FakeRuntime


@pytest.fixture()
def runtime() -> FakeRuntime:
    """Create a fake runtime."""
    return FakeRuntime()


@pytest.fixture()
def screen() -> MagicMock:
    """Create a mock error screen."""
    return MagicMock(spec=ErrorScreen)


@pytest.fixture()
def buffers() -> Generator[OutputBuffers, None, None]:
    """Create an output buffer stack and unwind anything a test leaves open."""
    stack = OutputBuffers()
    yield stack
    stack.discard_all(0)


@pytest.fixture()
def headers() -> ResponseHeaders:
    """Create unsent response headers."""
    return ResponseHeaders()


@pytest.fixture()
def dispatcher(
    screen: MagicMock,
    runtime: FakeRuntime,
    buffers: OutputBuffers,
    headers: ResponseHeaders,
) -> ErrorDispatcher:
    """Create a dispatcher that reserves no memory, cleans no buffers,
    prints nothing unhandled and never changes the working directory."""
    instance = ErrorDispatcher(
        screen=screen, reserve_memory=0, runtime=runtime, buffers=buffers, headers=headers
    )
    instance.clean_buffers = False
    instance.print_unhandled_in_debug = False
    instance.working_directory = None
    return instance


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """Write a YAML configuration file."""
    path = tmp_path / "error-dispatch.yaml"
    path.write_text(
        "dispatcher:\n"
        "  debug: true\n"
        "  clean_buffers: false\n"
        "  reserve_memory: 2048\n"
        "  working_directory: null\n"
        "screen:\n"
        "  type: cli\n"
        "logging:\n"
        "  level: DEBUG\n"
        "  format: text\n",
        encoding="utf-8",
    )
    return path
