"""Failure chain utilities.

A failure chain is a singly-linked list of exceptions, newest first, linked
through the same attributes the interpreter uses for implicit and explicit
chaining. These helpers walk and splice chains without ever looping on a
chain that happens to contain a cycle.
"""


def get_previous(exception: BaseException) -> BaseException | None:
    """Get the exception that precedes the given one in its chain.

    Follows ``__cause__`` first and falls back to ``__context__`` unless the
    context was explicitly suppressed, matching how tracebacks are printed.

    Args:
        exception: The exception to inspect

    Returns:
        The previous exception, or None at the end of the chain.
    """
    if exception.__cause__ is not None:
        return exception.__cause__
    if exception.__suppress_context__:
        return None
    return exception.__context__


def set_previous(exception: BaseException, previous: BaseException | None) -> None:
    """Link an exception to a new previous exception.

    Args:
        exception: The exception to modify
        previous: The exception to link, or None to end the chain here
    """
    exception.__cause__ = previous
    exception.__suppress_context__ = True


def get_exception_chain(exception: BaseException) -> list[BaseException]:
    """List exceptions starting from the given exception.

    Args:
        exception: Newest exception of the chain

    Returns:
        Every exception of the chain exactly once, newest first.
    """
    chain: list[BaseException] = []
    seen: set[int] = set()
    node: BaseException | None = exception

    while node is not None and id(node) not in seen:
        chain.append(node)
        seen.add(id(node))
        node = get_previous(node)

    return chain


def join_exception_chains(*exceptions: BaseException) -> BaseException | None:
    """Join exception chains together.

    The end of each chain is linked to the head of the chain passed before
    it, so ``join_exception_chains(a, x)`` with chains A->B->C and X->Y->Z
    yields X->Y->Z->A->B->C.

    Args:
        *exceptions: Heads of the chains to join, oldest first

    Returns:
        The last exception passed (head of the joined chain), or None if no
        exceptions were passed.
    """
    if not exceptions:
        return None

    for older, newer in zip(exceptions, exceptions[1:]):
        if older is newer:
            continue

        chain = get_exception_chain(newer)
        if any(node is older for node in chain):
            # already part of the newer chain
            continue

        tail = chain[-1]
        set_previous(tail, older)

    return exceptions[-1]
