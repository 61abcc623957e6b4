"""Single-occupant handler slot with one-shot borrowing.

A slot holds exactly one callable. ``borrow`` swaps in a one-shot resolver
that, when the slot next fires, puts the previous occupant back, calls it
with the same arguments and then resolves the returned future. Borrowing a
slot that is already borrowed chains: the newer resolver restores the older
one, so a single event resolves every outstanding borrow, oldest first.
"""

import asyncio
from typing import Any, Callable


def nop(*args, **kwargs):
    """A handler which does nothing."""


class HandlerSlot:
    """Holds the current handler for one kind of bin event."""

    def __init__(self, name: str, handler: Callable | None = None):
        self.name = name
        self._handler: Callable = handler if handler is not None else nop

    @property
    def handler(self) -> Callable:
        return self._handler

    @handler.setter
    def handler(self, handler: Callable | None):
        self._handler = handler if handler is not None else nop

    def fire(self, *args: Any):
        """Invoke whatever currently occupies the slot."""
        return self._handler(*args)

    def borrow(self, loop: asyncio.AbstractEventLoop) -> asyncio.Future:
        """Install a one-shot resolver and return the future it resolves.

        The future's result is the event argument, or ``None`` for events
        that carry none. If the restored handler raises, the future fails
        with that exception and the exception is re-raised to the firer.
        """
        borrowed = self._handler
        waiter = loop.create_future()

        def one_shot(*args: Any):
            self._handler = borrowed
            try:
                borrowed(*args)
            except Exception as e:
                if not waiter.done():
                    waiter.set_exception(e)
                raise
            if not waiter.done():
                waiter.set_result(args[0] if args else None)

        self._handler = one_shot
        return waiter

    def __repr__(self):
        return f"HandlerSlot({self.name!r}, {self._handler!r})"
