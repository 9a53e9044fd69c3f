# Author: Bradley R. Kinnard
# trace model - materialized prefix of a conceptually infinite state sequence

from typing import Any, Callable, Generic, Iterator, Sequence, TypeVar

S = TypeVar("S")
T = TypeVar("T")


class Trace(Generic[S]):
    """
    finite, immutable view over a sequence of states.

    a trace is conceptually infinite (index -> state); outside a proof
    assistant only a prefix is ever materialized, so len(trace) is the bound
    every temporal operator is evaluated against. suffixes share storage
    with the trace they came from.
    """

    __slots__ = ("_states", "_offset")

    def __init__(self, states: Sequence[S], _offset: int = 0):
        states = tuple(states)
        if not states:
            raise ValueError("trace must contain at least one state")
        if not 0 <= _offset < len(states):
            raise IndexError(f"offset {_offset} outside trace of length {len(states)}")
        self._states = states
        self._offset = _offset

    @classmethod
    def from_function(cls, fn: Callable[[int], S], length: int) -> "Trace[S]":
        """sample a total index -> state function over the first `length` indices."""
        if length < 1:
            raise ValueError(f"length must be >= 1, got {length}")
        return cls([fn(i) for i in range(length)])

    def __len__(self) -> int:
        return len(self._states) - self._offset

    def __getitem__(self, i: int) -> S:
        if not 0 <= i < len(self):
            raise IndexError(f"index {i} outside trace of length {len(self)}")
        return self._states[self._offset + i]

    def __iter__(self) -> Iterator[S]:
        return iter(self._states[self._offset:])

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Trace):
            return NotImplemented
        return tuple(self) == tuple(other)

    def __hash__(self) -> int:
        return hash(tuple(self))

    def __repr__(self) -> str:
        return f"Trace(length={len(self)})"

    @property
    def head(self) -> S:
        return self[0]

    @property
    def tail(self) -> "Trace[S]":
        return self.suffix(1)

    @property
    def last(self) -> S:
        return self[len(self) - 1]

    def suffix(self, i: int) -> "Trace[S]":
        """trace starting at index i."""
        if not 0 <= i < len(self):
            raise IndexError(f"suffix {i} outside trace of length {len(self)}")
        if i == 0:
            return self
        return Trace(self._states, self._offset + i)

    def states(self) -> tuple[S, ...]:
        return self._states[self._offset:]

    def map(self, fn: Callable[[S], T]) -> "Trace[T]":
        """observe every state through fn."""
        return Trace([fn(s) for s in self])
