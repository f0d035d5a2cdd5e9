"""
Lazy Stream Pipeline Application

HTTP front end over the lazy stream evaluator.
Features:
- Pipeline evaluation from stage descriptors
- Named function registry listing
- Java-style timestamp formatting
- Line search in text files with non-fatal read errors
- Health and system metrics
"""

import datetime
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException

from features import current_date_time, format_timestamp, timestamp_pattern
from lazy import PipelineError
from models import (
    FileGrepRequest,
    FileReadResult,
    PipelineRequest,
    PipelineResponse,
    TimestampResponse,
)
from utils import (
    build_stream,
    get_system_metrics,
    grep_lines,
    list_functions,
    measure_performance,
    run_terminal,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Lazy Stream Pipeline",
    description="Lazy filter/map/distinct/sort/skip/peek pipelines with terminal operations",
    version="1.0.0"
)


def _json_ready(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    return value


@app.post("/pipeline/evaluate", response_model=PipelineResponse)
def evaluate_pipeline(request: PipelineRequest) -> PipelineResponse:
    """
    Build a lazy pipeline over the request source and run its terminal operation.
    Nothing is evaluated until the terminal runs. Plain def: FastAPI runs it
    in its threadpool, off the event loop.
    """
    try:
        stream = build_stream(request.source, request.stages)

        (value, present), performance = measure_performance(
            f"pipeline_{request.terminal.value}",
            run_terminal,
            stream,
            request.terminal,
            identity=request.identity,
            combiner=request.combiner,
            key_function=request.key_function,
            value_function=request.value_function,
            parallel=request.parallel,
        )

        return PipelineResponse(
            result=_json_ready(value),
            present=present,
            stages_applied=[stage.type.value for stage in request.stages],
            performance=performance
        )

    except PipelineError as e:
        logger.warning(f"Rejected pipeline: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Pipeline failed: {str(e)}")


@app.get("/pipeline/functions")
async def get_functions() -> Dict[str, Any]:
    """List registered predicates, transforms and combiners"""
    return list_functions()


@app.get("/time/now", response_model=TimestampResponse)
async def get_time(pattern: Optional[str] = None) -> TimestampResponse:
    """Current date, time and date-time, plus a pattern-formatted timestamp"""
    today, now_time, now = current_date_time()
    pattern = pattern or timestamp_pattern()
    return TimestampResponse(
        date=today.isoformat(),
        time=now_time.isoformat(),
        date_time=now.isoformat(),
        formatted=format_timestamp(now, pattern),
        pattern=pattern
    )


@app.post("/files/grep", response_model=FileReadResult)
async def grep_file(request: FileGrepRequest) -> FileReadResult:
    """Lines of a text file containing a needle; read failures are reported, not raised"""
    return grep_lines(request.path, request.needle)


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.datetime.now().isoformat(),
        "system": get_system_metrics()
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
