"""A small saga runner with reverse-order compensation.

Every step that succeeds may register a compensating action. If a later step
raises, the registered compensations run in reverse order and the original
exception propagates unchanged. A compensation that itself fails is logged and
skipped, so it never masks the error that triggered the rollback.

Usage:
    with Saga("registration", event_id=str(event.id)) as saga:
        registration = saga.step("create_registration", create, compensate=delete_registration)
        ticket = saga.step("issue_ticket", lambda: issue_ticket(registration), compensate=delete_ticket)
"""

import typing as t
from types import TracebackType

import structlog

logger = structlog.get_logger(__name__)

T = t.TypeVar("T")


class Saga:
    """Explicit saga state: completed steps and pending compensations."""

    def __init__(self, name: str, **context: t.Any) -> None:
        """Initialize the saga with a name and logging context."""
        self.name = name
        self.completed_steps: list[str] = []
        self.compensated_steps: list[str] = []
        self._compensations: list[tuple[str, t.Callable[[], None]]] = []
        self.log = logger.bind(saga=name, **context)

    def step(
        self,
        name: str,
        action: t.Callable[[], T],
        compensate: t.Callable[[T], None] | None = None,
    ) -> T:
        """Run a step and register its compensation with the step's result."""
        result = action()
        self.completed_steps.append(name)
        if compensate is not None:
            self._compensations.append((name, lambda: compensate(result)))
        self.log.debug("saga_step_completed", step=name)
        return result

    def on_rollback(self, name: str, compensate: t.Callable[[], None]) -> None:
        """Register a compensation that is not tied to a step result."""
        self._compensations.append((name, compensate))

    def compensate(self) -> None:
        """Run pending compensations in reverse order; each runs at most once."""
        while self._compensations:
            name, compensation = self._compensations.pop()
            try:
                compensation()
            except Exception:
                self.log.warning("saga_compensation_failed", step=name, exc_info=True)
                continue
            self.compensated_steps.append(name)

    def __enter__(self) -> "Saga":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None:
            self._compensations.clear()
            self.log.info("saga_completed", steps=self.completed_steps)
            return False
        self.log.warning(
            "saga_rolling_back",
            failed_after=self.completed_steps[-1] if self.completed_steps else None,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        self.compensate()
        self.log.info("saga_rolled_back", compensated=self.compensated_steps)
        return False
