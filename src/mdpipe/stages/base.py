"""Transform-stage capability and stage-list entries."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, Union, runtime_checkable

from mdpipe.exceptions import PluginError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

__all__ = [
    "BaseStage",
    "Bare",
    "FunctionStage",
    "Stage",
    "StageSpec",
    "WithOptions",
    "as_stage_spec",
    "as_stage_specs",
    "stage_name",
]

logger = logging.getLogger(__name__)


@runtime_checkable
class Stage(Protocol):
    """Anything with ``apply(value, **options)``.

    ``apply`` may return an awaitable; the pipeline awaits it.
    """

    def apply(self, value: Any, **options: Any) -> Any: ...


class BaseStage(ABC):
    """Base class for named transform stages.

    Subclasses implement ``apply``. ``name`` defaults to the class name and
    shows up in logs and error messages. Stages that set ``blocking`` do
    synchronous CPU-bound work and are run in a worker thread.
    """

    name: str = ""
    blocking: bool = False

    @abstractmethod
    def apply(self, value: Any, **options: Any) -> Any:
        """Transform ``value`` and return the result."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={stage_name(self)!r})"


class FunctionStage(BaseStage):
    """Adapts a plain callable into a stage."""

    def __init__(self, func: Callable[..., Any], name: str = "") -> None:
        self.func = func
        self.name = name or getattr(func, "__name__", "function")

    def apply(self, value: Any, **options: Any) -> Any:
        return self.func(value, **options)


@dataclass(frozen=True)
class Bare:
    """A stage entry without options."""

    stage: Stage

    @property
    def options(self) -> Mapping[str, Any]:
        return MappingProxyType({})


@dataclass(frozen=True)
class WithOptions:
    """A stage entry paired with an options payload."""

    stage: Stage
    options: Mapping[str, Any] = field(default_factory=dict)


StageSpec: TypeAlias = Union[Bare, WithOptions]


def stage_name(stage: Any) -> str:
    """Return a display name for a stage object."""
    return getattr(stage, "name", "") or type(stage).__name__


def _check_stage(candidate: Any) -> Stage:
    if isinstance(candidate, Stage):
        return candidate
    if callable(candidate):
        return FunctionStage(candidate)
    raise PluginError(
        f"Invalid stage {candidate!r}: expected an object with apply() or a callable"
    )


def as_stage_spec(entry: Any) -> StageSpec:
    """Normalize one stage-list entry.

    Accepted shapes: ``Bare``/``WithOptions`` (validated), a stage object,
    a plain callable, or a ``(stage, options)`` pair.

    Raises:
        PluginError: If the entry does not provide the stage capability.
    """
    if isinstance(entry, Bare):
        return Bare(_check_stage(entry.stage))
    if isinstance(entry, WithOptions):
        return WithOptions(_check_stage(entry.stage), MappingProxyType(dict(entry.options)))
    if isinstance(entry, (tuple, list)):
        if len(entry) != 2 or not isinstance(entry[1], Mapping):
            raise PluginError(f"Stage pair must be (stage, options mapping), got {entry!r}")
        return WithOptions(_check_stage(entry[0]), MappingProxyType(dict(entry[1])))
    return Bare(_check_stage(entry))


def as_stage_specs(entries: Iterable[Any]) -> tuple[StageSpec, ...]:
    """Normalize a whole stage list, preserving order."""
    return tuple(as_stage_spec(entry) for entry in entries)
