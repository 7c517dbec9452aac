# src/logging/context.py - v3
"""Contextual logging support: attach run_id, stage and model to log records."""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

# Context variables are task-local, so concurrent generations keep their own.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)
_model: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "model", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    run_id: str | None = None
    stage: str | None = None
    model: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    return LogContext(run_id=_run_id.get(), stage=_stage.get(), model=_model.get())


@contextmanager
def run_context(run_id: str) -> Iterator[None]:
    """Tag records emitted inside the block with a run id."""
    token = _run_id.set(run_id)
    try:
        yield
    finally:
        _run_id.reset(token)


@contextmanager
def stage_context(stage: str, model: str | None = None) -> Iterator[None]:
    """Tag records emitted inside the block with a stage (and model)."""
    stage_token = _stage.set(stage)
    model_token = _model.set(model)
    try:
        yield
    finally:
        _model.reset(model_token)
        _stage.reset(stage_token)


def clear_context() -> None:
    _run_id.set(None)
    _stage.set(None)
    _model.set(None)
