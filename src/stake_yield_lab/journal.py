"""Undo log backing the engine's all-or-nothing operations.

Before an operation mutates anything, the components it will touch register
what they are about to change: whole records (a pool, a position, the
emission counters) or single slots of a mapping (one participant's last
stake time, one day of volume). :meth:`Journal.rollback` replays the undo
steps newest first, so the cost of a transaction follows what it touches,
not the size of the engine.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Hashable, Iterable, MutableMapping
from typing import Any

UndoStep = Callable[[], None]


class Journal:
    def __init__(self) -> None:
        self._undo: list[UndoStep] = []

    def keep(self, obj: object, *, only: Iterable[str] | None = None, skip: Iterable[str] = ()) -> None:
        """Save attributes of ``obj`` for in-place restore.

        Parameters
        ----------
        obj:
            Record whose ``vars()`` will be restored on rollback.
        only:
            Restrict the snapshot to these attribute names.
        skip:
            Attribute names left out of the snapshot.
        """

        names = list(only) if only is not None else list(vars(obj))
        skipped = set(skip)
        state: dict[str, Any] = {
            name: copy.deepcopy(getattr(obj, name)) for name in names if name not in skipped
        }
        self._undo.append(lambda: vars(obj).update(state))

    def keep_entry(self, mapping: MutableMapping[Any, Any], key: Hashable) -> None:
        """Save one slot of ``mapping``; a slot that did not exist is removed again."""

        if key in mapping:
            old = mapping[key]

            def undo() -> None:
                mapping[key] = old

        else:

            def undo() -> None:
                mapping.pop(key, None)

        self._undo.append(undo)

    def on_undo(self, step: UndoStep) -> None:
        self._undo.append(step)

    def rollback(self) -> None:
        while self._undo:
            self._undo.pop()()

    def __len__(self) -> int:
        return len(self._undo)


__all__ = ["Journal"]
