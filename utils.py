"""
Utility functions for the lazy stream pipeline: line sources, the named
function registry used to build pipelines from descriptors, terminal
dispatch, and performance/system measurements.
"""

import gc
import operator
import os
import time
import tracemalloc
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import psutil

import collectors
from lazy import LazyStream, Maybe, PipelineError
from models import FileReadResult, ReadErrorKind, StageSpec, StageType, TerminalType

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_EXAMPLE_FILE = "example.txt"
DEFAULT_MAX_ELEMENTS = 100_000


class UnknownFunctionError(PipelineError):
    """Raised when a descriptor names a function that is not registered."""
    pass


# ---------- Named function registry ----------

FUNCTION_REGISTRY: Dict[str, Dict[str, Callable]] = {
    'predicates': {
        'is_even': lambda x: x % 2 == 0,
        'is_odd': lambda x: x % 2 != 0,
        'is_positive': lambda x: x > 0,
        'is_negative': lambda x: x < 0,
        'is_blank': lambda x: not str(x).strip(),
        'not_blank': lambda x: bool(str(x).strip()),
    },
    'transforms': {
        'identity': lambda x: x,
        'double': lambda x: x * 2,
        'square': lambda x: x * x,
        'negate': lambda x: -x,
        'increment': lambda x: x + 1,
        'length': len,
        'upper': lambda x: str(x).upper(),
        'lower': lambda x: str(x).lower(),
        'to_string': str,
        'parity': lambda x: 'even' if x % 2 == 0 else 'odd',
        'first_char': lambda x: str(x)[:1],
        'chars': lambda x: list(str(x)),
        'digits': lambda x: [int(d) for d in str(abs(int(x)))],
        'range_to': lambda x: range(int(x)),
    },
    'combiners': {
        'add': operator.add,
        'multiply': operator.mul,
        'min': min,
        'max': max,
        'concat': lambda a, b: f"{a}{b}",
    },
    'actions': {
        'log': lambda x: logger.info(f"peek: {x}"),
        'print': print,
        'noop': lambda x: None,
    },
}


def register_function(category: str, name: str, fn: Callable) -> None:
    """Add a function to the registry under category"""
    if category not in FUNCTION_REGISTRY:
        raise ValueError(f"Unknown function category: {category}")
    FUNCTION_REGISTRY[category][name] = fn
    logger.info(f"Registered {category[:-1]} function: {name}")


def resolve_function(name: str, *categories: str) -> Callable:
    """Find name in the given categories (all categories when none given)"""
    for category in categories or tuple(FUNCTION_REGISTRY):
        fn = FUNCTION_REGISTRY[category].get(name)
        if fn is not None:
            return fn
    raise UnknownFunctionError(f"Unknown function: {name}")


def list_functions() -> Dict[str, List[str]]:
    return {category: sorted(fns) for category, fns in FUNCTION_REGISTRY.items()}


# ---------- Pipeline construction from descriptors ----------

def max_pipeline_elements() -> int:
    """Element budget from PIPELINE_MAX_ELEMENTS; invalid or non-positive values fall back to the default"""
    raw = os.environ.get("PIPELINE_MAX_ELEMENTS")
    if raw is None:
        return DEFAULT_MAX_ELEMENTS
    try:
        limit = int(raw)
    except ValueError:
        limit = 0
    if limit < 1:
        logger.warning(f"Ignoring PIPELINE_MAX_ELEMENTS={raw!r}, using {DEFAULT_MAX_ELEMENTS}")
        return DEFAULT_MAX_ELEMENTS
    return limit


def build_stream(source: Iterable[Any], stages: List[StageSpec],
                 peek_action: Optional[Callable[[Any], None]] = None,
                 max_elements: Optional[int] = None) -> LazyStream:
    """
    Chain descriptor stages onto a LazyStream over source (nothing runs yet).

    Every flat_map is followed by a bounded stage, so a single element
    cannot expand past max_elements.
    """
    limit = max_pipeline_elements() if max_elements is None else max_elements
    stream = LazyStream(source)

    for stage in stages:
        if stage.type == StageType.FILTER:
            stream = stream.filter(resolve_function(stage.function, 'predicates'))
        elif stage.type == StageType.MAP:
            stream = stream.map(resolve_function(stage.function, 'transforms'))
        elif stage.type == StageType.FLAT_MAP:
            stream = stream.flat_map(resolve_function(stage.function, 'transforms')).bounded(limit)
        elif stage.type == StageType.DISTINCT:
            stream = stream.distinct()
        elif stage.type == StageType.SORTED:
            key = resolve_function(stage.function, 'transforms') if stage.function else None
            stream = stream.sorted(key=key, reverse=stage.reverse)
        elif stage.type == StageType.SKIP:
            stream = stream.skip(stage.count)
        elif stage.type == StageType.LIMIT:
            stream = stream.limit(stage.count)
        elif stage.type == StageType.PEEK:
            action = resolve_function(stage.function, 'actions')
            if peek_action is not None:
                action = peek_action
            stream = stream.peek(action)
        else:
            raise PipelineError(f"Unsupported stage: {stage.type}")

    return stream


def run_terminal(stream: LazyStream, terminal: TerminalType,
                 identity: Any = None, combiner: Optional[str] = None,
                 key_function: Optional[str] = None,
                 value_function: Optional[str] = None,
                 parallel: bool = False) -> Tuple[Any, bool]:
    """
    Run the terminal operation and return (value, present).

    present is False only for optional results (min, max, find_first,
    reduce without identity) that hold no value. key_function maps elements
    for averaging, summarizing, grouping_by, min and max; value_function
    gives the values of to_map, whose keys are the elements themselves.
    """
    key_fn = resolve_function(key_function, 'transforms') if key_function else None

    if terminal == TerminalType.COUNT:
        return stream.count(), True
    if terminal == TerminalType.REDUCE:
        fn = resolve_function(combiner, 'combiners')
        if identity is None:
            return _unwrap(stream.reduce(fn))
        return stream.reduce(identity, fn), True
    if terminal == TerminalType.TO_LIST:
        return stream.collect(collectors.to_list()), True
    if terminal == TerminalType.TO_SET:
        return stream.collect(collectors.to_set()), True
    if terminal == TerminalType.TO_MAP:
        value_fn = resolve_function(value_function, 'transforms')
        return stream.collect(collectors.to_map(lambda x: x, value_fn)), True
    if terminal == TerminalType.AVERAGING:
        return stream.collect(collectors.averaging(key_fn)), True
    if terminal == TerminalType.SUMMARIZING:
        return stream.collect(collectors.summarizing(key_fn)).to_dict(), True
    if terminal == TerminalType.GROUPING_BY:
        return stream.collect(collectors.grouping_by(key_fn)), True
    if terminal == TerminalType.MIN:
        return _unwrap(stream.min(key=key_fn))
    if terminal == TerminalType.MAX:
        return _unwrap(stream.max(key=key_fn))
    if terminal == TerminalType.FIND_FIRST:
        return _unwrap(stream.find_first())
    if terminal == TerminalType.FOR_EACH:
        visited: List[Any] = []
        target = stream.parallel() if parallel else stream
        # list.append is atomic, workers share nothing else
        target.for_each(visited.append)
        return visited, True

    raise PipelineError(f"Unsupported terminal operation: {terminal}")


def _unwrap(result: Maybe) -> Tuple[Any, bool]:
    return result.or_else(None), result.is_present()


# ---------- Line sources ----------

class LineSource:
    """Re-iterable source of the text lines of a file; opened on each iteration."""

    def __init__(self, path: str, encoding: str = "utf-8"):
        self.path = path
        self.encoding = encoding

    def __iter__(self):
        with open(self.path, "r", encoding=self.encoding) as handle:
            for line in handle:
                yield line.rstrip("\r\n")

    def __repr__(self):
        return f"LineSource({self.path!r})"


def example_file() -> str:
    return os.environ.get("EXAMPLE_FILE", DEFAULT_EXAMPLE_FILE)


def read_lines(path: str, encoding: str = "utf-8") -> LazyStream:
    """Lazy stream over the lines of path; the file is not touched until a terminal runs"""
    return LazyStream(LineSource(path, encoding))


def grep_lines(path: str, needle: str) -> FileReadResult:
    """
    Return the lines of path containing needle.

    A missing or unreadable file never raises: the failure is logged and
    reported through FileReadResult.error so the caller can carry on.
    """
    try:
        lines = read_lines(path).filter(lambda line: needle in line).to_list()
        return FileReadResult(path=path, lines=lines)
    except FileNotFoundError as e:
        kind = ReadErrorKind.NOT_FOUND
        error = e
    except PermissionError as e:
        kind = ReadErrorKind.PERMISSION_DENIED
        error = e
    except OSError as e:
        kind = ReadErrorKind.IO_ERROR
        error = e
    except UnicodeDecodeError as e:
        kind = ReadErrorKind.DECODE_ERROR
        error = e

    message = f"Error reading file: {error}"
    logger.warning(f"{message} ({kind.value})")
    return FileReadResult(path=path, error=message, error_kind=kind)


# ---------- Performance and system metrics ----------

def measure_performance(operation_name: str, func, *args, **kwargs) -> Tuple[Any, Dict[str, Any]]:
    """
    Run func and return (result, performance info) with peak traced memory.
    Tracing that was already running is left running.
    """
    started_tracing = not tracemalloc.is_tracing()
    if started_tracing:
        tracemalloc.start()
    gc.collect()
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        current, peak = tracemalloc.get_traced_memory()

        return result, {
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": peak / 1024 / 1024,
            "success": True,
        }

    except Exception as e:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        logger.error(f"{operation_name} failed after {execution_time_ms:.2f}ms: {e}")
        raise

    finally:
        if started_tracing:
            tracemalloc.stop()


def get_system_metrics() -> Dict[str, Any]:
    """Return basic system metrics (CPU, memory, uptime)."""
    try:
        memory = psutil.virtual_memory()
        return {
            'uptime_seconds': time.time() - psutil.boot_time(),
            'cpu_count': psutil.cpu_count(logical=True),
            'cpu_usage_percent': psutil.cpu_percent(interval=None),
            'memory_usage_mb': memory.used / (1024 * 1024),
            'memory_total_mb': memory.total / (1024 * 1024),
        }

    except Exception as e:
        logger.error(f"Failed to get system metrics: {e}")
        return {
            'uptime_seconds': 0,
            'cpu_count': 0,
            'cpu_usage_percent': 0,
            'memory_usage_mb': 0,
            'memory_total_mb': 0,
        }
