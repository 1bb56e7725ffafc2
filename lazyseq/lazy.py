"""Pull-based lazy sequences: stages and the chainable wrapper around them."""

import copy
import logging
import operator
from typing import (
    Any, Callable, Generic, Iterable, Iterator, List, Optional, Protocol, Tuple, TypeVar,
    Union, runtime_checkable,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")
T_co = TypeVar("T_co", covariant=True)


class LazySequenceError(Exception):
    """Base class for errors raised by this library."""
    pass


class ChainConstructionError(LazySequenceError):
    """Raised when a chain is built from arguments it cannot use."""
    pass


class Ended:
    """Marker returned by ``next()`` once a stage has no more elements."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "ENDED"


ENDED = Ended()

Pulled = Union[T, Ended]


@runtime_checkable
class Pullable(Protocol[T_co]):
    """Anything with a ``next()`` that yields an element or ``ENDED``."""

    def next(self) -> Union[T_co, Ended]:
        ...


def _require_callable(fn, role: str):
    if not callable(fn):
        raise ChainConstructionError(f"{role} must be callable, got {type(fn).__name__}")
    return fn


def _clone(stage):
    clone = getattr(stage, "clone", None)
    if clone is not None:
        return clone()
    try:
        return copy.deepcopy(stage)
    except (TypeError, copy.Error) as e:
        raise ChainConstructionError(
            f"cannot copy {type(stage).__name__} stage: {e}"
        ) from e


# --------- stages ----------
class Stage(Generic[T]):
    """Common base: holds at most one upstream stage, owned exclusively."""
    label = "stage"

    def __init__(self, upstream=None):
        self._upstream = upstream

    def next(self) -> Pulled[T]:
        raise NotImplementedError

    def clone(self) -> "Stage[T]":
        """Independent copy with the same cursor state; upstream is cloned too."""
        twin = copy.copy(self)
        if self._upstream is not None:
            twin._upstream = _clone(self._upstream)
        return twin

    def __repr__(self):
        if self._upstream is None:
            return self.label
        return f"{self.label} <- {self._upstream!r}"


class GenerateStage(Stage[T]):
    """Calls ``fn()`` on every pull. Never ends."""
    label = "generate"

    def __init__(self, fn: Callable[[], T]):
        super().__init__()
        self._fn = fn

    def next(self) -> Pulled[T]:
        return self._fn()


class RangeStage(Stage[T]):
    """
    Walks from ``start`` using ``advance(current) -> (element, next_current)``
    until ``is_last(current)`` holds. The end test runs before advancing, and
    once it has held the stage stays ended.
    """
    label = "range"

    def __init__(self, start: T, is_last: Callable[[T], bool],
                 advance: Callable[[T], Tuple[T, T]]):
        super().__init__()
        self._current = start
        self._is_last = is_last
        self._advance = advance
        self._ended = False

    def next(self) -> Pulled[T]:
        if self._ended:
            return ENDED
        if self._is_last(self._current):
            self._ended = True
            return ENDED
        value, self._current = self._advance(self._current)
        return value


class IterableStage(Stage[T]):
    """
    Pulls from a Python iterable. An iterator has a single owner: cloning
    moves it into the copy and leaves this stage ended, so nothing is buffered
    on behalf of a wrapper that may never be pulled again.
    """
    label = "iterable"

    def __init__(self, iterable: Iterable[T]):
        super().__init__()
        self._it = iter(iterable)

    def next(self) -> Pulled[T]:
        return next(self._it, ENDED)

    def clone(self) -> "IterableStage[T]":
        twin = copy.copy(self)
        self._it = iter(())
        return twin


class MapStage(Stage[U]):
    label = "map"

    def __init__(self, fn: Callable[[T], U], upstream: Pullable[T]):
        super().__init__(upstream)
        self._fn = fn

    def next(self) -> Pulled[U]:
        value = self._upstream.next()
        if value is ENDED:
            return ENDED
        return self._fn(value)


class FilterStage(Stage[T]):
    """Skips upstream elements until one satisfies the predicate."""
    label = "filter"

    def __init__(self, pred: Callable[[T], bool], upstream: Pullable[T]):
        super().__init__(upstream)
        self._pred = pred

    def next(self) -> Pulled[T]:
        value = self._upstream.next()
        while value is not ENDED:
            if self._pred(value):
                return value
            value = self._upstream.next()
        return ENDED


class TakeStage(Stage[T]):
    """Forwards at most ``count`` pulls upstream, then ends for good."""
    label = "take"

    def __init__(self, count: int, upstream: Pullable[T]):
        super().__init__(upstream)
        self._remaining = max(count, 0)

    def next(self) -> Pulled[T]:
        if not self._remaining:
            return ENDED
        self._remaining -= 1
        return self._upstream.next()

    def __repr__(self):
        return f"take({self._remaining}) <- {self._upstream!r}"


class TakeWhileStage(Stage[T]):
    """
    Yields while the predicate holds. The first failing element is consumed
    and dropped, and the stage latches into the ended state.
    """
    label = "take_while"

    def __init__(self, pred: Callable[[T], bool], upstream: Pullable[T]):
        super().__init__(upstream)
        self._pred = pred
        self._ended = False

    def next(self) -> Pulled[T]:
        if self._ended:
            return ENDED
        value = self._upstream.next()
        if value is not ENDED and self._pred(value):
            return value
        self._ended = True
        return ENDED


# --------- fluent front-end ----------
class LazySequence(Generic[T]):
    """
    A chainable, lazy sequence. Each chaining call wraps a copy of the held
    stage in a new stage and returns a new wrapper, so nothing runs until
    ``each`` (or a direct pull) drives the chain.
    """

    def __init__(self, stage: Pullable[T]):
        if not isinstance(stage, Pullable):
            raise ChainConstructionError(
                f"cannot wrap {type(stage).__name__}: it has no next() method"
            )
        self._stage = stage

    @property
    def stage(self) -> Pullable[T]:
        return self._stage

    # --------- chainable operators (lazy) ----------
    def map(self, fn: Callable[[T], U]) -> "LazySequence[U]":
        return self._compose(MapStage, _require_callable(fn, "map function"))

    def filter(self, pred: Callable[[T], bool]) -> "LazySequence[T]":
        return self._compose(FilterStage, _require_callable(pred, "filter predicate"))

    def take(self, n: int) -> "LazySequence[T]":
        try:
            count = operator.index(n)
        except TypeError:
            raise ChainConstructionError(
                f"take count must be an integer, got {type(n).__name__}"
            ) from None
        return self._compose(TakeStage, count)

    def take_while(self, pred: Callable[[T], bool]) -> "LazySequence[T]":
        return self._compose(TakeWhileStage, _require_callable(pred, "take_while predicate"))

    # --------- pulling ----------
    def next(self) -> Pulled[T]:
        """Pull one element from the chain, or ``ENDED``."""
        return self._stage.next()

    def each(self, fn: Callable[[T], Any]) -> None:
        """Pull until the chain ends, calling ``fn`` on every element in order."""
        _require_callable(fn, "each callback")
        pulled = 0
        value = self._stage.next()
        while value is not ENDED:
            fn(value)
            pulled += 1
            value = self._stage.next()
        logger.debug(f"Chain [{self._stage!r}] ended after {pulled} elements")

    def to_list(self) -> List[T]:
        items = []
        self.each(items.append)
        return items

    # --------- iterator protocol ----------
    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        value = self._stage.next()
        if value is ENDED:
            raise StopIteration
        return value

    def __repr__(self):
        return f"LazySequence({self._stage!r})"

    # --------- helpers ----------
    def _compose(self, stage_cls, arg) -> "LazySequence":
        stage = stage_cls(arg, _clone(self._stage))
        logger.debug(f"Composed {stage!r}")
        return LazySequence(stage)


# --------- entry points ----------
def from_generator(fn: Callable[[], T]) -> LazySequence[T]:
    """Infinite sequence of ``fn()`` results; bound it with ``take``/``take_while``."""
    return LazySequence(GenerateStage(_require_callable(fn, "generator function")))


def from_iterable(iterable: Iterable[T]) -> LazySequence[T]:
    try:
        stage = IterableStage(iterable)
    except TypeError:
        raise ChainConstructionError(
            f"{type(iterable).__name__} object is not iterable"
        ) from None
    return LazySequence(stage)


def lazy_range_until(start: T, is_last: Callable[[T], bool],
                     advance: Callable[[T], Tuple[T, T]]) -> LazySequence[T]:
    """
    General range: ends when ``is_last(current)`` holds; otherwise
    ``advance(current)`` returns ``(element, next_current)``.
    """
    _require_callable(is_last, "range end test")
    _require_callable(advance, "range advance function")
    return LazySequence(RangeStage(start, is_last, advance))


def lazy_range(start: T, end: T,
               step: Optional[Callable[[T], T]] = None) -> LazySequence[T]:
    """
    Yield ``start``, ``step(start)``, ... up to but excluding ``end``.
    Without ``step`` values advance by ``+ 1``. The end test is equality, so a
    step that jumps over ``end`` never terminates on its own.
    """
    if step is None:
        step = _increment
    else:
        _require_callable(step, "range step function")

    def is_last(current):
        return current == end

    def advance(current):
        return current, step(current)

    return LazySequence(RangeStage(start, is_last, advance))


def _increment(value):
    return value + 1
