"""Models for the lazy stream pipeline (stage descriptors, requests, results)."""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field, field_validator, model_validator
from enum import Enum


class StageType(str, Enum):
    """Intermediate (lazy) stage kinds."""
    FILTER = "filter"
    MAP = "map"
    FLAT_MAP = "flat_map"
    DISTINCT = "distinct"
    SORTED = "sorted"
    SKIP = "skip"
    LIMIT = "limit"
    PEEK = "peek"


class TerminalType(str, Enum):
    """Terminal operations that force evaluation."""
    COUNT = "count"
    REDUCE = "reduce"
    TO_LIST = "to_list"
    TO_SET = "to_set"
    TO_MAP = "to_map"
    AVERAGING = "averaging"
    SUMMARIZING = "summarizing"
    GROUPING_BY = "grouping_by"
    MIN = "min"
    MAX = "max"
    FIND_FIRST = "find_first"
    FOR_EACH = "for_each"


class ReadErrorKind(str, Enum):
    """Why a line source could not be read."""
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    IO_ERROR = "io_error"
    DECODE_ERROR = "decode_error"


class SummaryStatistics(BaseModel):
    """count/sum/min/max/average over a numeric stream."""
    count: int = Field(0, ge=0, description="Number of elements")
    sum: Union[int, float] = Field(0, description="Sum of elements")
    min: Optional[Union[int, float]] = Field(None, description="Smallest element, None when empty")
    max: Optional[Union[int, float]] = Field(None, description="Largest element, None when empty")

    @property
    def average(self) -> float:
        return self.sum / self.count if self.count else 0.0

    def accept(self, value: Union[int, float]) -> "SummaryStatistics":
        """Fold one more value in; returns self."""
        self.count += 1
        self.sum += value
        self.min = value if self.min is None else min(self.min, value)
        self.max = value if self.max is None else max(self.max, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump()
        data["average"] = self.average
        return data

    def __str__(self) -> str:
        return (
            f"SummaryStatistics{{count={self.count}, sum={self.sum}, "
            f"min={self.min}, average={self.average:f}, max={self.max}}}"
        )


class StageSpec(BaseModel):
    """One stage of a pipeline built from a request."""
    type: StageType = Field(..., description="Stage kind")
    function: Optional[str] = Field(
        None,
        description="Registered function name: predicate for filter, transform for map/flat_map/sorted key, action for peek"
    )
    count: Optional[int] = Field(None, description="Element count for skip/limit")
    reverse: bool = Field(False, description="Descending order for sorted")

    @model_validator(mode="after")
    def check_arguments(self):
        """Function stages need a function, skip/limit need a count."""
        if self.type in (StageType.FILTER, StageType.MAP, StageType.FLAT_MAP, StageType.PEEK):
            if not self.function:
                raise ValueError(f"Stage '{self.type.value}' requires a function name")
        if self.type in (StageType.SKIP, StageType.LIMIT) and self.count is None:
            raise ValueError(f"Stage '{self.type.value}' requires a count")
        return self


class PipelineRequest(BaseModel):
    """Evaluate a pipeline over an in-memory source."""
    source: List[Union[int, float, str]] = Field(
        ...,
        description="Ordered source elements",
        max_length=100_000
    )
    stages: List[StageSpec] = Field(default_factory=list, description="Stages in declaration order")
    terminal: TerminalType = Field(TerminalType.TO_LIST, description="Terminal operation")
    identity: Optional[Union[int, float, str]] = Field(
        None,
        description="Identity for reduce; without one reduce returns an optional result"
    )
    combiner: Optional[str] = Field(None, description="Registered combiner name for reduce")
    key_function: Optional[str] = Field(
        None,
        description="Registered transform mapping elements for averaging, summarizing, grouping_by, min and max"
    )
    value_function: Optional[str] = Field(
        None,
        description="Registered transform giving the to_map values; keys are the elements"
    )
    parallel: bool = Field(False, description="Evaluate for_each on a worker pool")

    @field_validator("combiner")
    @classmethod
    def validate_combiner(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Combiner name cannot be blank")
        return v

    @model_validator(mode="after")
    def check_terminal_arguments(self):
        if self.terminal == TerminalType.REDUCE and not self.combiner:
            raise ValueError("Terminal 'reduce' requires a combiner")
        if self.terminal in (TerminalType.AVERAGING, TerminalType.SUMMARIZING,
                             TerminalType.GROUPING_BY) and not self.key_function:
            raise ValueError(f"Terminal '{self.terminal.value}' requires a key_function")
        if self.terminal == TerminalType.TO_MAP and not self.value_function:
            raise ValueError("Terminal 'to_map' requires a value_function")
        return self


class PipelineResponse(BaseModel):
    """Terminal result plus bookkeeping."""
    result: Any = Field(None, description="Terminal value (None when absent)")
    present: bool = Field(True, description="False when an optional result holds no value")
    stages_applied: List[str] = Field(default_factory=list, description="Stage names in order")
    performance: Dict[str, Any] = Field(default_factory=dict, description="Timing information")


class FileGrepRequest(BaseModel):
    """Search a text file for lines containing a needle."""
    path: str = Field(..., min_length=1, description="Path of the text file")
    needle: str = Field(..., description="Substring to look for")


class FileReadResult(BaseModel):
    """Matching lines, or the error message when the file could not be read."""
    path: str
    lines: List[str] = Field(default_factory=list)
    error: Optional[str] = Field(None, description="Human-readable failure message")
    error_kind: Optional[ReadErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TimestampResponse(BaseModel):
    """Current date and time in several renderings."""
    date: str
    time: str
    date_time: str
    formatted: str
    pattern: str
