"""Lazy, pull-based sequences with composable map/filter/take stages."""

from .lazy import (
    ENDED, ChainConstructionError, Ended, FilterStage, GenerateStage, IterableStage,
    LazySequence, LazySequenceError, MapStage, Pullable, RangeStage, Stage, TakeStage,
    TakeWhileStage, from_generator, from_iterable, lazy_range, lazy_range_until,
)
from .models import ConsumptionReport, LazySettings, OperationSpec, OperationType
from .utils import (
    build_chain, clear_performance_metrics, get_performance_summary, load_settings,
    measure_consumption,
)

__version__ = "0.1.0"
