from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Protocol


@dataclass(frozen=True)
class StageMetadata:
    """Metadata attached to a stage's ``process`` method."""

    name: str
    requires: frozenset[str] = frozenset()
    provides: frozenset[str] = frozenset()


class StageMethod(Protocol):
    _stage_metadata: StageMetadata
    __name__: str

    def __call__(self, *args: Any, **kwargs: Any) -> Any: ...


def stage(
    name: Optional[str] = None,
    *,
    requires: Iterable[str] = (),
    provides: Iterable[str] = (),
) -> Callable[[StageMethod], StageMethod]:
    """Decorator to mark a method as a pipeline stage.

    ``requires`` lists the context keys that must be present before the stage
    runs, ``provides`` the keys its result adds to the context.
    """

    def decorator(method: StageMethod) -> StageMethod:
        method._stage_metadata = StageMetadata(
            name=name if name is not None else method.__name__,
            requires=frozenset(requires),
            provides=frozenset(provides),
        )
        return method

    return decorator


def stage_metadata(method: Any) -> Optional[StageMetadata]:
    return getattr(method, "_stage_metadata", None)
