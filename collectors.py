"""
Collectors for LazyStream.collect().

A collector is a (supplier, accumulator, finisher) triple: supplier builds an
empty container, accumulator folds one element in and returns the container,
finisher turns the container into the result.
"""

from typing import Any, Callable, Dict, List, Tuple

from lazy import PipelineError
from models import SummaryStatistics

Collector = Tuple[Callable[[], Any], Callable[[Any, Any], Any], Callable[[Any], Any]]


class DuplicateKeyError(PipelineError):
    """Raised by to_map() when two elements map to the same key."""
    pass


def _identity(x):
    return x


def _append(container, item):
    container.append(item)
    return container


def to_list() -> Collector:
    return (list, _append, _identity)


def to_set() -> Collector:
    def add(container, item):
        container.add(item)
        return container
    return (set, add, _identity)


def to_map(key_fn: Callable, value_fn: Callable = _identity) -> Collector:
    def put(container: Dict, item):
        key = key_fn(item)
        if key in container:
            raise DuplicateKeyError(f"Duplicate key {key!r} (values {container[key]!r} and {value_fn(item)!r})")
        container[key] = value_fn(item)
        return container
    return (dict, put, _identity)


def counting() -> Collector:
    return (lambda: 0, lambda n, _: n + 1, _identity)


def averaging(fn: Callable = _identity) -> Collector:
    """Mean of fn(element); 0.0 for an empty stream"""
    def add(acc: List, item):
        acc[0] += fn(item)
        acc[1] += 1
        return acc

    def finish(acc: List) -> float:
        total, n = acc
        return total / n if n else 0.0

    return (lambda: [0, 0], add, finish)


def summarizing(fn: Callable = _identity) -> Collector:
    return (SummaryStatistics, lambda stats, item: stats.accept(fn(item)), _identity)


def grouping_by(key_fn: Callable, downstream: Collector = None) -> Collector:
    """Group elements by key_fn; each group is reduced with downstream (to_list by default)"""
    supplier, accumulator, finisher = downstream or to_list()

    def add(groups: Dict, item):
        key = key_fn(item)
        if key not in groups:
            groups[key] = supplier()
        groups[key] = accumulator(groups[key], item)
        return groups

    def finish(groups: Dict) -> Dict:
        return {key: finisher(value) for key, value in groups.items()}

    return (dict, add, finish)


def joining(separator: str = "", prefix: str = "", suffix: str = "") -> Collector:
    def finish(parts: List) -> str:
        return prefix + separator.join(parts) + suffix
    return (list, lambda parts, item: _append(parts, str(item)), finish)
