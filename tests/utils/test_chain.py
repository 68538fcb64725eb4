"""Tests for failure chain utilities."""

import pytest

from error_dispatch.utils.chain import (
    get_exception_chain,
    get_previous,
    join_exception_chains,
    set_previous,
)


def make_chain(*messages: str) -> list[Exception]:
    """Create a chain of exceptions linked newest first."""
    exceptions = [ValueError(message) for message in messages]
    for newer, older in zip(exceptions, exceptions[1:]):
        set_previous(newer, older)
    return exceptions


def messages(exception: BaseException) -> list[str]:
    return [str(node) for node in get_exception_chain(exception)]


class TestGetPrevious:
    """Test reading the previous link."""

    def test_explicit_cause(self):
        """Test the explicit cause is the previous exception."""
        cause = KeyError("cause")
        exception = ValueError("effect")
        exception.__cause__ = cause

        assert get_previous(exception) is cause

    def test_implicit_context(self):
        """Test an exception raised while handling another links to it."""
        try:
            try:
                raise KeyError("first")
            except KeyError:
                raise ValueError("second")  # noqa: B904
        except ValueError as e:
            exception = e

        assert isinstance(get_previous(exception), KeyError)

    def test_suppressed_context(self):
        """Test ``raise ... from None`` ends the chain."""
        try:
            try:
                raise KeyError("first")
            except KeyError:
                raise ValueError("second") from None
        except ValueError as e:
            exception = e

        assert get_previous(exception) is None

    def test_set_previous_overrides_context(self):
        """Test setting the previous link hides the implicit context."""
        exception = ValueError("effect")
        exception.__context__ = KeyError("context")
        previous = TypeError("previous")

        set_previous(exception, previous)
        assert get_previous(exception) is previous

        set_previous(exception, None)
        assert get_previous(exception) is None


class TestGetExceptionChain:
    """Test listing chains."""

    def test_single_exception(self):
        """Test an unlinked exception is a chain of one."""
        exception = ValueError("alone")

        assert get_exception_chain(exception) == [exception]

    def test_newest_first(self):
        """Test the chain is listed newest first."""
        a, b, c = make_chain("A", "B", "C")

        assert get_exception_chain(a) == [a, b, c]

    def test_cycle_is_listed_once(self):
        """Test a cyclic chain terminates with every node listed once."""
        a, b, c = make_chain("A", "B", "C")
        set_previous(c, a)

        assert get_exception_chain(a) == [a, b, c]


class TestJoinExceptionChains:
    """Test joining chains."""

    def test_join_two_chains(self):
        """Test the newer chain ends in the older chain."""
        a, _, _ = make_chain("A", "B", "C")
        x, _, _ = make_chain("X", "Y", "Z")

        assert join_exception_chains(a, x) is x
        assert messages(x) == ["X", "Y", "Z", "A", "B", "C"]

    def test_join_three_chains(self):
        """Test chains are joined in order, oldest last."""
        a, _ = make_chain("A", "B")
        m, _ = make_chain("M", "N")
        x, _ = make_chain("X", "Y")

        assert join_exception_chains(a, m, x) is x
        assert messages(x) == ["X", "Y", "M", "N", "A", "B"]

    def test_join_single_exception(self):
        """Test joining one exception returns it unchanged."""
        exception = ValueError("alone")

        assert join_exception_chains(exception) is exception
        assert get_previous(exception) is None

    def test_join_nothing(self):
        """Test joining no exceptions returns None."""
        assert join_exception_chains() is None

    def test_join_same_exception(self):
        """Test joining an exception with itself creates no cycle."""
        exception = ValueError("alone")

        assert join_exception_chains(exception, exception) is exception
        assert get_previous(exception) is None

    @pytest.mark.parametrize("position", [1, 2])
    def test_join_already_linked(self, position):
        """Test an older chain already contained in the newer one is not re-linked."""
        x, y, z = make_chain("X", "Y", "Z")
        older = [x, y, z][position]

        assert join_exception_chains(older, x) is x
        assert messages(x) == ["X", "Y", "Z"]
