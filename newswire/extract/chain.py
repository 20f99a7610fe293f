"""
Per-field strategy fallback chains.

Each field (title, content, author, ...) has its own ordered list of
strategies. A strategy returns Found(value) or NOT_FOUND; the first Found
that passes the field's acceptance check wins. Exceptions raised inside a
strategy are recorded and treated as NOT_FOUND, so a parsing failure in one
strategy only disqualifies that strategy.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Generic, TypeVar

from ..core.types import StrategyOutcome


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T


class _NotFound:
    _instance: "_NotFound | None" = None

    def __new__(cls) -> "_NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()

Result = Found | _NotFound


def found_if(value: Any) -> Result:
    """Wrap a truthy value in Found, anything falsy becomes NOT_FOUND."""
    if value:
        return Found(value)
    return NOT_FOUND


@dataclass(frozen=True)
class Strategy:
    """A named extraction attempt for one field.

    Attributes:
        name: Identifier recorded in diagnostics ("meta:og:title", "selector", ...)
        confidence: Relative trust in this strategy, 0-1
        fn: Callable returning Found or NOT_FOUND
    """

    name: str
    confidence: float
    fn: Callable[[], Result]


class FieldChain:
    """Ordered strategies for one field, first accepted result wins.

    Args:
        field: Field name used in diagnostics
        strategies: Strategies in priority order
        accept: Optional predicate a Found value must also satisfy
    """

    def __init__(
        self,
        field: str,
        strategies: list[Strategy],
        accept: Callable[[Any], bool] | None = None,
    ):
        self.field = field
        self.strategies = strategies
        self.accept = accept

    def resolve(self, outcomes: list[StrategyOutcome] | None = None) -> tuple[Result, str | None]:
        """Run strategies in order.

        Args:
            outcomes: Optional list that receives one StrategyOutcome per strategy tried

        Returns:
            Tuple of (result, name of the winning strategy or None)
        """
        for strategy in self.strategies:
            error = None
            try:
                result = strategy.fn()
            except Exception as exc:  # noqa: BLE001
                result = NOT_FOUND
                error = f"{type(exc).__name__}: {exc}"
                logger.debug("Strategy %s for %s failed: %s", strategy.name, self.field, error)
            ok = isinstance(result, Found) and (self.accept is None or self.accept(result.value))
            if outcomes is not None:
                outcomes.append(
                    StrategyOutcome(
                        field=self.field,
                        strategy=strategy.name,
                        confidence=strategy.confidence,
                        found=ok,
                        error=error,
                    )
                )
            if ok:
                return result, strategy.name
        return NOT_FOUND, None
