"""
Small language-feature showcase built around the stream pipeline:
an interface with default and static behaviour, a functional protocol,
predicates, suppliers, and Java-style date-time pattern formatting.
"""

import os
import re
from abc import ABC
from datetime import date, datetime, time
from typing import Callable, List, Optional, Protocol, Tuple

DEFAULT_TIMESTAMP_PATTERN = "yyyy-MM-dd HH:mm:ss"

NAMES: Tuple[str, ...] = ("John", "Jane", "Jack", "Doe")
NUMBERS: Tuple[int, ...] = tuple(range(1, 11))
LIST_OF_LISTS: Tuple[Tuple[int, ...], ...] = ((1, 2, 3), (4, 5, 6), (7, 8, 9))


# ---------- Interface with default and static behaviour ----------

class Greeter(ABC):
    """Capability set: implementers inherit default_method unless they override it."""

    def default_method(self) -> str:
        return "Default method in interface"

    @staticmethod
    def static_method() -> str:
        return "Static method in interface"


class AnonymousGreeter(Greeter):
    """The single variant; it keeps the default behaviour."""
    pass


# ---------- Functional interface ----------

class Action(Protocol):
    """Anything with a no-argument execute()"""

    def execute(self) -> str:
        ...


class FunctionAction:
    """Adapts a plain zero-argument function to the Action protocol."""

    def __init__(self, fn: Callable[[], str]):
        self._fn = fn

    def execute(self) -> str:
        return self._fn()


def lambda_action() -> Action:
    return FunctionAction(lambda: "Lambda expression executed")


def is_even(n: int) -> bool:
    return n % 2 == 0


def new_list() -> List:
    """Supplier of empty lists"""
    return list()


# ---------- Date / time ----------

_PATTERN_TOKENS = re.compile(r"yyyy|yy|MM|dd|HH|mm|ss|SSS|'(?:[^']|'')*'")

_STRFTIME = {
    "yyyy": "%Y",
    "yy": "%y",
    "MM": "%m",
    "dd": "%d",
    "HH": "%H",
    "mm": "%M",
    "ss": "%S",
}


def timestamp_pattern() -> str:
    return os.environ.get("TIMESTAMP_PATTERN", DEFAULT_TIMESTAMP_PATTERN)


def format_timestamp(moment: Optional[datetime] = None, pattern: Optional[str] = None) -> str:
    """
    Format a datetime with a Java-style pattern such as "yyyy-MM-dd HH:mm:ss".

    Supported letters: yyyy, yy, MM, dd, HH, mm, ss and SSS (milliseconds).
    Text in single quotes is copied verbatim ('' is a literal quote); any
    other character is copied as is.
    """
    moment = moment or datetime.now()
    pattern = pattern or timestamp_pattern()

    out = []
    pos = 0
    for match in _PATTERN_TOKENS.finditer(pattern):
        out.append(pattern[pos:match.start()])
        token = match.group(0)
        if token.startswith("'"):
            out.append(token[1:-1].replace("''", "'") or "'")
        elif token == "SSS":
            out.append(f"{moment.microsecond // 1000:03d}")
        else:
            out.append(moment.strftime(_STRFTIME[token]))
        pos = match.end()
    out.append(pattern[pos:])
    return "".join(out)


def current_date_time() -> Tuple[date, time, datetime]:
    now = datetime.now()
    return now.date(), now.time(), now
