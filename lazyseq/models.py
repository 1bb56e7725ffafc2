"""Pydantic models for settings, declarative chain steps and consumption reports."""

import logging
import os
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

LOG_LEVEL_ENV = "LAZYSEQ_LOG_LEVEL"


class LazySettings(BaseModel):
    """Library settings, read from the environment."""
    log_level: str = Field(
        "WARNING",
        description="Root logging level name (DEBUG, INFO, WARNING, ...)"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Accept any standard logging level name, case-insensitively."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls) -> "LazySettings":
        values = {}
        if os.environ.get(LOG_LEVEL_ENV):
            values["log_level"] = os.environ[LOG_LEVEL_ENV]
        return cls(**values)


class OperationType(str, Enum):
    """Chain steps that can be described declaratively."""
    MAP = "map"
    FILTER = "filter"
    TAKE = "take"
    TAKE_WHILE = "take_while"


class OperationSpec(BaseModel):
    """One step of a chain: a function for map/filter/take_while, a count for take."""
    type: OperationType = Field(..., description="Which chain step to apply")
    fn: Optional[Callable[..., Any]] = Field(
        None,
        description="Transform or predicate for map, filter and take_while"
    )
    count: Optional[int] = Field(
        None,
        description="Element budget for take; negative counts take nothing"
    )

    @model_validator(mode='after')
    def validate_arguments(self):
        """Each step type needs exactly the argument it consumes."""
        if self.type == OperationType.TAKE:
            if self.count is None:
                raise ValueError("take requires count")
            if self.fn is not None:
                raise ValueError("take does not accept fn")
        else:
            if self.fn is None:
                raise ValueError(f"{self.type.value} requires fn")
            if self.count is not None:
                raise ValueError(f"{self.type.value} does not accept count")
        return self


class ConsumptionReport(BaseModel):
    """Outcome of draining one chain."""
    name: str = Field(..., description="Label of the measured chain")
    elements: int = Field(..., description="Number of elements pulled", ge=0)
    execution_time_ms: float = Field(..., description="Wall time in milliseconds", ge=0)
    peak_memory_mb: float = Field(..., description="Peak traced memory in MB", ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "evens",
                "elements": 5,
                "execution_time_ms": 0.42,
                "peak_memory_mb": 0.01
            }
        }
    )
