from abc import ABC, abstractmethod
from typing import Any, Awaitable, Dict, Optional, Protocol, Tuple, Union, runtime_checkable

from tweaker_recipes.app.schemas.segment import Segment


class HandlerParseError(ValueError):
    """Raised when a segment does not match the statement shape a handler expects."""
    pass


@runtime_checkable
class RecipeHandler(Protocol):
    """Anything the dispatcher can register: a name, a cheap score and a parser.

    Either method may return an awaitable.
    """

    name: str

    def can_parse(
        self, segment: Segment, context: Optional[Dict[str, Any]] = None
    ) -> Union[float, Awaitable[float]]:  # pragma: no cover - interface
        ...

    def parse(
        self, segment: Segment, context: Optional[Dict[str, Any]] = None
    ) -> Any:  # pragma: no cover - interface
        ...


class MarkerHandler(ABC):
    """Handler claiming any segment whose raw text contains one of ``markers``."""

    name: str = ""
    markers: Tuple[str, ...] = ()

    def can_parse(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> float:
        raw_text = getattr(segment, "raw_text", None)
        if not raw_text:
            return 0
        return 1 if any(marker in raw_text for marker in self.markers) else 0

    @abstractmethod
    def parse(self, segment: Segment, context: Optional[Dict[str, Any]] = None) -> Any:  # pragma: no cover - interface
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
