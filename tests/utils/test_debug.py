"""Tests for plaintext exception rendering."""

import pytest

from error_dispatch.exceptions import ChainedFailure, FatalFailure, RuntimeFailure
from error_dispatch.models.errors import Severity
from error_dispatch.utils.debug import (
    get_exception_message,
    get_exception_name,
    get_origin,
    render_exception,
    render_trace,
)


def raise_and_catch(exception: BaseException) -> BaseException:
    """Raise an exception so it carries a traceback."""
    try:
        raise exception
    except BaseException as e:
        return e


class TestGetExceptionName:
    """Test naming exceptions."""

    @pytest.mark.parametrize(
        "exception,expected",
        [
            (RuntimeFailure("Undefined index", Severity.NOTICE), "Notice"),
            (RuntimeFailure("Old", Severity.USER_DEPRECATED), "User deprecated"),
            (RuntimeFailure("Odd", 1 << 20), "Unknown error (1048576)"),
            (FatalFailure("Call to undefined function"), "Fatal error"),
            (FatalFailure("Out of memory", out_of_memory=True), "Out of memory"),
            (ValueError("Boom"), "ValueError"),
            (ChainedFailure("Chained"), "error_dispatch.exceptions.ChainedFailure"),
        ],
    )
    def test_get_exception_name(self, exception, expected):
        """Test the display name of each kind of exception."""
        assert get_exception_name(exception) == expected

    def test_nested_class_name(self):
        """Test nested classes use their qualified name."""

        class LocalError(Exception):
            pass

        name = get_exception_name(LocalError())
        assert name.startswith(f"{__name__}.")
        assert name.endswith("LocalError")


class TestGetOrigin:
    """Test finding where an exception comes from."""

    def test_failure_origin(self):
        """Test failure records report their explicit origin."""
        failure = RuntimeFailure("Undefined index", Severity.NOTICE, file="app.x", line=12)

        assert get_origin(failure) == ("app.x", 12)

    def test_traceback_origin(self):
        """Test raised exceptions report their innermost frame."""
        exception = raise_and_catch(ValueError("Boom"))

        file, line = get_origin(exception)
        assert file == __file__
        assert isinstance(line, int)

    def test_unknown_origin(self):
        """Test an exception that was never raised has no origin."""
        assert get_origin(ValueError("Boom")) == (None, None)


class TestRenderException:
    """Test rendering exceptions as text."""

    def test_get_exception_message(self):
        """Test failure messages exclude their details."""
        failure = ChainedFailure("Chained")
        failure.details["extra"] = 1

        assert get_exception_message(failure) == "Chained"
        assert get_exception_message(ValueError("Boom")) == "Boom"

    def test_single_exception_without_trace(self):
        """Test the header of a single exception."""
        failure = RuntimeFailure("Undefined index", Severity.NOTICE, file="app.x", line=12)

        output = render_exception(failure, show_trace=False)

        assert output == "Notice: Undefined index in app.x on line 12\n"

    def test_unknown_origin_placeholders(self):
        """Test placeholders are used when the origin is unknown."""
        output = render_exception(ValueError("Boom"), show_trace=False)

        assert output == "ValueError: Boom in unknown file on line ?\n"

    def test_chain_with_counters(self):
        """Test every previous exception is rendered with a counter."""
        original = RuntimeFailure("Undefined index", Severity.NOTICE, file="app.x", line=12)
        chained = ChainedFailure("Chained", previous=original)

        output = render_exception(chained, show_trace=False, show_previous=True)

        lines = output.splitlines()
        assert lines[0].startswith("[1/2] error_dispatch.exceptions.ChainedFailure: Chained")
        assert lines[1] == "[2/2] Notice: Undefined index in app.x on line 12"

    def test_previous_hidden_by_default(self):
        """Test only the given exception is rendered by default."""
        chained = ChainedFailure("Chained", previous=ValueError("Boom"))

        output = render_exception(chained, show_trace=False)

        assert "Boom" not in output

    def test_trace_included(self):
        """Test the traceback follows the header."""
        exception = raise_and_catch(ValueError("Boom"))

        output = render_exception(exception)

        assert output.startswith("ValueError: Boom in ")
        assert "raise_and_catch" in output

    def test_render_trace_without_traceback(self):
        """Test the placeholder for exceptions that were never raised."""
        assert render_trace(ValueError("Boom")) == "  (no traceback)\n"
