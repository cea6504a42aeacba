"""
Refresh scheduler driving the route progress pipeline.

Each cycle fetches the full route and the vehicle leg concurrently, then
redraws the overlays, publishes a ProgressSummary and recenters the map on the
vehicle. Cycles start when the tracking parameters change and on a fixed
timer. Cycles may overlap; only the most recently initiated one is applied.
"""

from enum import Enum
from typing import Callable, Optional, Set
import asyncio
import logging
import time

from .config import TrackerConfig
from .metrics import (
    CYCLE_APPLIED,
    CYCLE_DISCARDED,
    CYCLE_STARTED,
    ROUTE_UNDETERMINED,
    CycleEvent,
    EventHook,
    collect_metrics,
    emit_event,
    log_metrics,
)
from .overlay import OverlayManager, build_route_artifacts
from .progress import ProgressSummary, build_summary
from .route import RouteResult, TrackingParams

logger = logging.getLogger(__name__)

SummarySink = Callable[[ProgressSummary], None]


class SchedulerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class SchedulerStoppedError(RuntimeError):
    """Raised when a stopped scheduler is asked to track again."""


class RefreshScheduler:
    """
    Runs refresh cycles for one tracking consumer.

    The scheduler owns the drawn overlay set and the published summary. It is
    an explicit resource: ``stop()`` (or leaving ``async with``) cancels the
    timer and every in-flight cycle, and nothing is applied afterwards.
    """

    def __init__(
        self,
        client,
        overlays: OverlayManager,
        sink: SummarySink,
        config: Optional[TrackerConfig] = None,
        event_hook: Optional[EventHook] = None,
    ):
        """
        Args:
            client: Route fetch adapter with an async ``fetch_route(origin, destination)``
            overlays: OverlayManager bound to the render surface
            sink: Callable receiving each published ProgressSummary
            config: Tracker configuration (refresh interval, zoom, styles)
            event_hook: Optional callable receiving CycleEvent objects
        """
        self.client = client
        self.overlays = overlays
        self.sink = sink
        self.config = config or TrackerConfig()
        self.event_hook = event_hook

        self.state = SchedulerState.IDLE
        self.params: Optional[TrackingParams] = None
        self.summary: Optional[ProgressSummary] = None

        self._cycle = 0
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()

    @property
    def latest_cycle(self) -> int:
        """Sequence number of the most recently initiated cycle."""
        return self._cycle

    async def __aenter__(self) -> "RefreshScheduler":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def start(self, params: TrackingParams) -> None:
        """Begin tracking: run a cycle now and every refresh interval."""
        if self.state is SchedulerState.STOPPED:
            raise SchedulerStoppedError("Scheduler has been stopped")
        if self.state is SchedulerState.RUNNING:
            await self.update(params)
            return

        logger.debug(f"Starting tracking with {params}")
        self.state = SchedulerState.RUNNING
        self._apply_params(params)

    async def update(self, params: TrackingParams) -> None:
        """Track new parameters; equal parameters are ignored."""
        if self.state is SchedulerState.STOPPED:
            raise SchedulerStoppedError("Scheduler has been stopped")
        if self.state is SchedulerState.IDLE:
            await self.start(params)
            return
        if params == self.params:
            return

        logger.debug(f"Tracking parameters changed to {params}")
        self._apply_params(params)

    async def stop(self) -> None:
        """Stop the timer and drop every in-flight cycle."""
        if self.state is SchedulerState.STOPPED:
            return
        self.state = SchedulerState.STOPPED

        tasks = list(self._inflight)
        if self._timer is not None:
            tasks.append(self._timer)
            self._timer = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug(f"Scheduler stopped after {self._cycle} cycles")

    async def drain(self) -> None:
        """Wait until no cycle is in flight."""
        while True:
            pending = [task for task in self._inflight if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _apply_params(self, params: TrackingParams) -> None:
        self.params = params
        self._launch_cycle(retract_first=True)
        self._restart_timer()

    def _restart_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.create_task(self._tick())

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.config.refresh_interval)
            self._launch_cycle(retract_first=False)

    def _launch_cycle(self, retract_first: bool) -> None:
        self._cycle += 1
        cycle = self._cycle
        if retract_first:
            self.overlays.clear()

        task = asyncio.create_task(self._run_cycle(cycle, self.params))
        self._inflight.add(task)
        task.add_done_callback(self._cycle_done)

    def _cycle_done(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Refresh cycle failed: {error!r}")

    def _is_current(self, cycle: int) -> bool:
        return self.state is SchedulerState.RUNNING and cycle == self._cycle

    async def _run_cycle(
        self, cycle: int, params: TrackingParams
    ) -> Optional[ProgressSummary]:
        emit_event(
            self.event_hook,
            CycleEvent(CYCLE_STARTED, cycle, {"is_routing": params.is_routing}),
        )

        started = time.monotonic()
        full_route, vehicle_leg = await asyncio.gather(
            self.client.fetch_route(params.start, params.end),
            self.client.fetch_route(params.vehicle_location, params.target),
        )
        fetch_seconds = time.monotonic() - started

        if not self._is_current(cycle):
            logger.debug(
                f"Discarding result of cycle {cycle}; latest is {self._cycle}, "
                f"state {self.state.value}"
            )
            emit_event(
                self.event_hook,
                CycleEvent(CYCLE_DISCARDED, cycle, {"latest_cycle": self._cycle}),
            )
            return None

        return self._apply_cycle(cycle, params, full_route, vehicle_leg, fetch_seconds)

    def _apply_cycle(
        self,
        cycle: int,
        params: TrackingParams,
        full_route: RouteResult,
        vehicle_leg: RouteResult,
        fetch_seconds: float,
    ) -> ProgressSummary:
        self.overlays.replace(
            build_route_artifacts(params, full_route, vehicle_leg, self.config.styles)
        )

        summary = build_summary(params, full_route, vehicle_leg)
        self.summary = summary
        self.sink(summary)

        self.overlays.surface.set_view(params.vehicle_location, self.config.zoom)

        if summary.route_undetermined:
            logger.warning("Could not determine the route between start and end")
            emit_event(self.event_hook, CycleEvent(ROUTE_UNDETERMINED, cycle, {}))
        emit_event(self.event_hook, CycleEvent(CYCLE_APPLIED, cycle, summary.as_dict()))
        log_metrics(
            collect_metrics(cycle, fetch_seconds, full_route, vehicle_leg, summary),
            self.config.metrics,
        )
        return summary
