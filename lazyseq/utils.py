"""
Helpers for building chains from declarative step lists and for measuring
how much time and memory draining a chain costs.
"""

import gc
import logging
import time
import tracemalloc
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from .lazy import LazySequence
from .models import ConsumptionReport, LazySettings, OperationSpec, OperationType

logger = logging.getLogger(__name__)


def load_settings() -> LazySettings:
    """Settings from the environment, or the defaults when they do not validate."""
    try:
        return LazySettings.from_env()
    except ValidationError as e:
        logger.warning(f"Ignoring invalid environment settings, using defaults: {e}")
        return LazySettings()


# Configure logging
logging.basicConfig(level=load_settings().log_level)

# Reports recorded by measure_consumption
_performance_reports: List[ConsumptionReport] = []


def build_chain(source: LazySequence,
                operations: List[Union[OperationSpec, Dict[str, Any]]]) -> LazySequence:
    """Apply each step to ``source`` left to right. Nothing is evaluated."""
    chain = source
    for op in operations:
        if not isinstance(op, OperationSpec):
            op = OperationSpec.model_validate(op)

        if op.type == OperationType.MAP:
            chain = chain.map(op.fn)
        elif op.type == OperationType.FILTER:
            chain = chain.filter(op.fn)
        elif op.type == OperationType.TAKE:
            chain = chain.take(op.count)
        elif op.type == OperationType.TAKE_WHILE:
            chain = chain.take_while(op.fn)
    return chain


def measure_consumption(name: str, chain: LazySequence,
                        fn: Optional[Callable[[Any], Any]] = None) -> ConsumptionReport:
    """Drain ``chain`` with ``each`` and record elements, wall time and peak memory."""
    elements = 0

    def _count(value):
        nonlocal elements
        elements += 1
        if fn is not None:
            fn(value)

    gc.collect()
    tracemalloc.start()
    start_time = time.perf_counter()
    try:
        chain.each(_count)
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()

    report = ConsumptionReport(
        name=name,
        elements=elements,
        execution_time_ms=execution_time_ms,
        peak_memory_mb=peak / 1024 / 1024,
    )
    _performance_reports.append(report)
    logger.info(f"{name}: {elements} elements in {execution_time_ms:.2f} ms")
    return report


def get_performance_summary() -> Dict[str, Any]:
    """Totals and averages over every recorded report."""
    count = len(_performance_reports)
    total_time_ms = sum(r.execution_time_ms for r in _performance_reports)
    total_elements = sum(r.elements for r in _performance_reports)
    return {
        "total_chains": count,
        "total_elements": total_elements,
        "total_time_ms": total_time_ms,
        "avg_time_ms": total_time_ms / count if count else 0.0,
        "max_peak_memory_mb": max((r.peak_memory_mb for r in _performance_reports), default=0.0),
    }


def clear_performance_metrics():
    _performance_reports.clear()
