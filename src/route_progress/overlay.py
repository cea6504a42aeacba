"""
Ownership of route overlays drawn on a render surface.
"""

from dataclasses import dataclass
from typing import Hashable, List, Protocol, Sequence, Tuple
import logging

from .config import OverlayStyles, PolylineStyle
from .geometry import Coordinate
from .route import RouteResult, TrackingParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlayArtifact:
    """A styled polyline to draw on the render surface."""

    name: str
    coordinates: Tuple[Coordinate, ...]
    style: PolylineStyle


class RenderSurface(Protocol):
    """What the tracker needs from a map."""

    def add_overlay(self, artifact: OverlayArtifact) -> Hashable:
        """Attach an artifact and return a handle for later removal."""
        ...

    def remove_overlay(self, handle: Hashable) -> None:
        ...

    def set_view(self, center: Coordinate, zoom: int) -> None:
        ...


class OverlayManager:
    """
    Tracks the overlays currently attached to a surface.

    ``replace`` always retracts the whole previous set before attaching the new
    one, so no overlay survives two consecutive cycles.
    """

    def __init__(self, surface: RenderSurface):
        self.surface = surface
        self._handles: List[Hashable] = []

    @property
    def handles(self) -> Tuple[Hashable, ...]:
        return tuple(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def clear(self) -> None:
        """
        Retract every owned overlay.

        A handle stays owned until its removal succeeds, so overlays left on
        the surface by a failing removal are retried by the next clear.
        """
        retracted = 0
        while self._handles:
            self.surface.remove_overlay(self._handles[0])
            del self._handles[0]
            retracted += 1
        if retracted:
            logger.debug(f"Retracted {retracted} overlays")

    def replace(self, artifacts: Sequence[OverlayArtifact]) -> None:
        """
        Replace the drawn set with new artifacts.

        Raises:
            Exception: Whatever the surface raises while retracting or
                       attaching. Artifacts attached before the failure are
                       retracted again; any the surface fails to remove stay
                       owned.
        """
        self.clear()
        attached: List[Hashable] = []
        try:
            for artifact in artifacts:
                attached.append(self.surface.add_overlay(artifact))
        except Exception:
            self._handles = attached
            self.clear()
            raise
        self._handles = attached
        logger.debug(f"Attached {len(attached)} overlays")


def build_route_artifacts(
    params: TrackingParams,
    full_route: RouteResult,
    vehicle_leg: RouteResult,
    styles: OverlayStyles,
) -> List[OverlayArtifact]:
    """Overlays for one cycle; routes without geometry are not drawn."""
    artifacts = []
    if not full_route.is_empty:
        artifacts.append(
            OverlayArtifact("full_route", full_route.geometry, styles.full_route)
        )
    if not vehicle_leg.is_empty:
        artifacts.append(
            OverlayArtifact(
                "vehicle_leg",
                vehicle_leg.geometry,
                styles.vehicle_leg(params.is_routing),
            )
        )
    return artifacts
