"""
Module for reporting refresh cycle events and metrics.
"""

from typing import Any, Callable, Dict, NamedTuple, Optional
import logging

from .progress import ProgressSummary
from .route import RouteResult

logger = logging.getLogger(__name__)

CYCLE_STARTED = "cycle_started"
CYCLE_APPLIED = "cycle_applied"
CYCLE_DISCARDED = "cycle_discarded"
ROUTE_UNDETERMINED = "route_undetermined"


class CycleEvent(NamedTuple):
    """A structured event emitted by the refresh scheduler."""

    kind: str
    cycle: int
    data: Dict[str, Any]


EventHook = Callable[[CycleEvent], None]


class CycleMetrics(NamedTuple):
    """Container for the metrics of one applied cycle."""

    cycle: int
    fetch_seconds: float
    full_route_points: int
    vehicle_leg_points: int
    full_route_distance_m: float
    vehicle_leg_distance_m: float
    progress_state: str


def collect_metrics(
    cycle: int,
    fetch_seconds: float,
    full_route: RouteResult,
    vehicle_leg: RouteResult,
    summary: ProgressSummary,
) -> CycleMetrics:
    return CycleMetrics(
        cycle=cycle,
        fetch_seconds=fetch_seconds,
        full_route_points=len(full_route),
        vehicle_leg_points=len(vehicle_leg),
        full_route_distance_m=full_route.distance,
        vehicle_leg_distance_m=vehicle_leg.distance,
        progress_state=summary.progress_state.value,
    )


def emit_event(hook: Optional[EventHook], event: CycleEvent) -> None:
    """
    Deliver an event to the host hook.

    Errors raised by the hook are logged and do not interrupt the cycle.
    """
    logger.debug(f"{event.kind} cycle={event.cycle} {event.data}")
    if hook is None:
        return
    try:
        hook(event)
    except Exception:
        logger.exception(f"Event hook failed on {event.kind}")


def log_metrics(metrics: CycleMetrics, enabled: bool = True) -> None:
    """
    Log the metrics of an applied cycle as key=value lines.

    Args:
        metrics: CycleMetrics for the cycle
        enabled: Whether metrics output was requested
    """
    if not enabled:
        return

    logger.debug("=== ROUTE_PROGRESS_METRICS ===")
    logger.debug(f"cycle={metrics.cycle}")
    logger.debug(f"fetch_seconds={metrics.fetch_seconds:.3f}")
    logger.debug(f"full_route_points={metrics.full_route_points}")
    logger.debug(f"vehicle_leg_points={metrics.vehicle_leg_points}")
    logger.debug(f"full_route_distance_m={metrics.full_route_distance_m:.1f}")
    logger.debug(f"vehicle_leg_distance_m={metrics.vehicle_leg_distance_m:.1f}")
    logger.debug(f"progress_state={metrics.progress_state}")
    logger.debug("=== END_ROUTE_PROGRESS_METRICS ===")
