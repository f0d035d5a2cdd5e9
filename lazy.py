import logging
import os
from concurrent.futures import ThreadPoolExecutor, wait, ALL_COMPLETED
from functools import reduce as builtin_reduce

logger = logging.getLogger(__name__)

_MISSING = object()


class PipelineError(Exception):
    """Raised when a pipeline is built with an invalid stage."""
    pass


class NoValueError(PipelineError):
    """Raised when get() is called on an empty Maybe."""
    pass


DEFAULT_MAX_WORKERS = 4


class ElementLimitError(PipelineError):
    """Raised when more elements flow through a bounded stage than allowed."""
    pass


def default_max_workers():
    """Pool size from STREAM_MAX_WORKERS; invalid or non-positive values fall back to 4"""
    raw = os.environ.get("STREAM_MAX_WORKERS")
    if raw is None:
        return DEFAULT_MAX_WORKERS
    try:
        workers = int(raw)
    except ValueError:
        workers = 0
    if workers < 1:
        logger.warning(f"Ignoring STREAM_MAX_WORKERS={raw!r}, using {DEFAULT_MAX_WORKERS}")
        return DEFAULT_MAX_WORKERS
    return workers


class Maybe:
    """
    Explicit "value or no value" result returned by min/max/find_first.
    Callers have to handle both presence and absence.
    """
    __slots__ = ("_value",)

    def __init__(self, value=_MISSING):
        self._value = value

    @classmethod
    def of(cls, value):
        return cls(value)

    @classmethod
    def empty(cls):
        return _EMPTY

    def is_present(self):
        return self._value is not _MISSING

    def is_empty(self):
        return self._value is _MISSING

    def get(self):
        if self._value is _MISSING:
            raise NoValueError("No value present")
        return self._value

    def or_else(self, other):
        return self._value if self.is_present() else other

    def or_else_get(self, supplier):
        return self._value if self.is_present() else supplier()

    def if_present(self, action):
        if self.is_present():
            action(self._value)

    def map(self, fn):
        if self.is_empty():
            return self
        return Maybe(fn(self._value))

    def filter(self, pred):
        if self.is_present() and pred(self._value):
            return self
        return _EMPTY

    def __bool__(self):
        return self.is_present()

    def __eq__(self, other):
        if not isinstance(other, Maybe):
            return NotImplemented
        return self._value == other._value

    def __hash__(self):
        return hash(self._value) if self.is_present() else 0

    def __repr__(self):
        if self.is_empty():
            return "Maybe.empty"
        return f"Maybe[{self._value!r}]"


_EMPTY = Maybe()


class LazyStream:
    """
    A chainable, lazy stream over an in-memory sequence. Stages are recorded
    and applied only when a terminal operation runs; every intermediate
    operation returns a new stream, so a pipeline can be evaluated again.
    """
    def __init__(self, source, stages=(), parallel=False, max_workers=None):
        self._source = source
        self._stages = tuple(stages)   # sequence of ("stage_name", callable/arg)
        self._parallel = parallel
        self._max_workers = max_workers

    # --------- constructors ----------
    @classmethod
    def of(cls, *items):
        return cls(items)

    @classmethod
    def empty(cls):
        return cls(())

    @classmethod
    def range(cls, start, stop):
        """Half-open integer range [start, stop)"""
        return cls(range(start, stop))

    @classmethod
    def range_closed(cls, start, end):
        """Inclusive integer range [start, end]"""
        return cls(range(start, end + 1))

    # --------- chainable operators (lazy) ----------
    def filter(self, pred):
        return self._with_stage(("filter", pred))

    def map(self, fn):
        return self._with_stage(("map", fn))

    def flat_map(self, fn):
        return self._with_stage(("flat_map", fn))

    def distinct(self):
        return self._with_stage(("distinct", None))

    def sorted(self, key=None, reverse=False):
        return self._with_stage(("sorted", (key, reverse)))

    def skip(self, n):
        return self._with_stage(("skip", max(int(n), 0)))

    def limit(self, n):
        return self._with_stage(("limit", int(n)))

    def peek(self, action):
        return self._with_stage(("peek", action))

    def bounded(self, max_elements):
        """Fail with ElementLimitError once more than max_elements pass this point"""
        return self._with_stage(("bounded", int(max_elements)))

    def parallel(self, max_workers=None):
        if max_workers is not None and int(max_workers) < 1:
            raise PipelineError(f"max_workers must be >= 1, got {max_workers}")
        return LazyStream(self._source, self._stages, True, max_workers)

    def sequential(self):
        return LazyStream(self._source, self._stages, False, None)

    def is_parallel(self):
        return self._parallel

    @property
    def stages(self):
        """Names of the pending stages, in declaration order"""
        return [name for name, _ in self._stages]

    # --------- terminal operations (force evaluation) ----------
    def count(self):
        n = 0
        for _ in self:
            n += 1
        logger.debug(f"count() -> {n} over stages {self.stages}")
        return n

    def for_each(self, action):
        """Apply action to every element; unordered when the stream is parallel"""
        if self._parallel:
            self._parallel_for_each(action)
            return
        for item in self:
            action(item)

    def for_each_ordered(self, action):
        """Apply action to every element in encounter order, even when parallel"""
        for item in self:
            action(item)

    def reduce(self, *args):
        """
        reduce(identity, combiner) folds from identity and returns the scalar.
        reduce(combiner) has no identity and returns a Maybe.
        """
        if len(args) == 2:
            identity, combiner = args
            return builtin_reduce(combiner, self, identity)
        if len(args) == 1:
            combiner = args[0]
            acc = _MISSING
            for item in self:
                acc = item if acc is _MISSING else combiner(acc, item)
            return Maybe(acc)
        raise TypeError(f"reduce() takes 1 or 2 arguments ({len(args)} given)")

    def collect(self, collector):
        """Run a (supplier, accumulator, finisher) collector from collectors.py"""
        supplier, accumulator, finisher = collector
        container = supplier()
        for item in self:
            container = accumulator(container, item)
        return finisher(container)

    def to_list(self):
        return list(self)

    def to_set(self):
        return set(self)

    def sum(self, start=0):
        total = start
        for item in self:
            total += item
        return total

    def average(self):
        """Arithmetic mean as a Maybe; empty on an empty stream"""
        total = 0
        n = 0
        for item in self:
            total += item
            n += 1
        if n == 0:
            return Maybe.empty()
        return Maybe(total / n)

    def min(self, key=None):
        return self._extreme(min, key)

    def max(self, key=None):
        return self._extreme(max, key)

    def find_first(self):
        for item in self:
            return Maybe(item)
        return Maybe.empty()

    def any_match(self, pred):
        return any(pred(x) for x in self)

    def all_match(self, pred):
        return all(pred(x) for x in self)

    def none_match(self, pred):
        return not self.any_match(pred)

    # --------- iterator protocol ----------
    def __iter__(self):
        it = iter(self._source)
        for stage, arg in self._stages:
            if stage == "filter":
                it = _filter(it, arg)
            elif stage == "map":
                it = _map(it, arg)
            elif stage == "flat_map":
                it = _flat_map(it, arg)
            elif stage == "distinct":
                it = _distinct(it)
            elif stage == "sorted":
                it = _sorted(it, *arg)
            elif stage == "skip":
                it = _skip(it, arg)
            elif stage == "limit":
                it = _limit(it, arg)
            elif stage == "peek":
                it = _peek(it, arg)
            elif stage == "bounded":
                it = _bounded(it, arg)
            else:
                raise PipelineError(f"Unknown stage: {stage}")
        yield from it

    def __repr__(self):
        mode = "parallel" if self._parallel else "sequential"
        return f"LazyStream(stages={self.stages}, {mode})"

    # --------- helpers ----------
    def _with_stage(self, stage):
        return LazyStream(self._source, self._stages + (stage,), self._parallel, self._max_workers)

    def _extreme(self, pick, key):
        sentinel = object()
        if key is None:
            value = pick(self, default=sentinel)
        else:
            value = pick(self, key=key, default=sentinel)
        if value is sentinel:
            return Maybe.empty()
        return Maybe(value)

    def _parallel_for_each(self, action):
        workers = default_max_workers() if self._max_workers is None else self._max_workers
        items = list(self)
        logger.info(f"Fanning out {len(items)} elements to {workers} workers")
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(action, item) for item in items]
            wait(futures, return_when=ALL_COMPLETED)
        for future in futures:
            error = future.exception()
            if error is not None:
                raise error


def _filter(gen, pred):
    for x in gen:
        if pred(x):
            yield x


def _map(gen, fn):
    for x in gen:
        yield fn(x)


def _flat_map(gen, fn):
    for x in gen:
        yield from fn(x)


def _distinct(gen):
    seen = set()
    unhashable = []
    for x in gen:
        try:
            if x in seen:
                continue
            seen.add(x)
        except TypeError:
            if x in unhashable:
                continue
            unhashable.append(x)
        yield x


def _sorted(gen, key, reverse):
    # sorting needs the whole upstream before the first element can flow
    yield from sorted(gen, key=key, reverse=reverse)


def _skip(gen, k):
    skipped = 0
    for x in gen:
        if skipped < k:
            skipped += 1
            continue
        yield x


def _limit(gen, n):
    if n <= 0:
        return
    taken = 0
    for x in gen:
        yield x
        taken += 1
        if taken >= n:
            return


def _peek(gen, action):
    for x in gen:
        action(x)
        yield x


def _bounded(gen, max_elements):
    seen = 0
    for x in gen:
        seen += 1
        if seen > max_elements:
            raise ElementLimitError(f"More than {max_elements} elements in pipeline")
        yield x
