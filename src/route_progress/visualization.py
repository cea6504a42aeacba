#!/usr/bin/env python3
"""
Route progress visualization using folium maps.
"""

from typing import Dict, Optional
import itertools
import logging

import folium
from folium.template import Template

from .config import OverlayStyles
from .geometry import Coordinate
from .overlay import OverlayArtifact
from .progress import ProgressSummary
from .route import TrackingParams

logger = logging.getLogger(__name__)


class ProgressLegend(folium.MacroElement):
    """Summary box showing distances, progress and estimated times."""

    def __init__(self, summary: ProgressSummary, is_routing: bool, styles: OverlayStyles):
        super().__init__()
        self.summary = summary
        self.leg_label = "Vehicle to destination" if is_routing else "Vehicle to origin"
        self.full_route_color = styles.full_route.color
        self.vehicle_leg_color = styles.vehicle_leg(is_routing).color

        self._template = Template(
            """
        {% macro html(this, kwargs) %}
        <div id="route-progress-legend" style="
            position: fixed;
            bottom: 50px;
            left: 50px;
            width: 300px;
            background-color: white;
            border: 2px solid grey;
            z-index: 9999;
            font-size: 13px;
            padding: 12px;
            font-family: Arial, sans-serif;
            border-radius: 5px;
            box-shadow: 0 2px 5px rgba(0,0,0,0.2);
            box-sizing: border-box;
        ">
            <b>Route progress</b><br>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: {{ this.full_route_color }}; font-weight: bold; font-size: 18px;">&mdash;</span>
                Start to destination: <b>{{ this.summary.total_distance_km }} km</b>
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: {{ this.vehicle_leg_color }}; font-weight: bold; font-size: 18px;">- -</span>
                {{ this.leg_label }}: <b>{{ this.summary.vehicle_to_target_km }} km</b>
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                Progress: <b>{{ this.summary.progress_percent }}%</b>
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                Estimated time (vehicle leg): <b>{{ this.summary.estimated_time }}</b>
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                Total estimated time: <b>{{ this.summary.total_estimated_time }}</b>
            </div>
            {% if this.summary.route_undetermined %}
            <div style="margin: 4px 0; line-height: 1.3; color: #D23C4C; font-weight: bold;">
                Could not determine the route. Check the start and end points.
            </div>
            {% endif %}
        </div>
        {% endmacro %}
        """
        )


class FoliumSurface:
    """
    Render surface backed by a folium map.

    Attached overlays, the current view and the latest summary are kept in
    memory; ``build_map`` renders them into a fresh folium.Map.
    """

    def __init__(self, params: TrackingParams, styles: Optional[OverlayStyles] = None):
        self.params = params
        self.styles = styles or OverlayStyles()
        self.center: Coordinate = params.vehicle_location
        self.zoom = 10
        self.summary: Optional[ProgressSummary] = None
        self._overlays: Dict[str, OverlayArtifact] = {}
        self._ids = itertools.count(1)

    @property
    def overlays(self) -> Dict[str, OverlayArtifact]:
        return dict(self._overlays)

    def add_overlay(self, artifact: OverlayArtifact) -> str:
        handle = f"overlay-{next(self._ids)}"
        self._overlays[handle] = artifact
        return handle

    def remove_overlay(self, handle: str) -> None:
        self._overlays.pop(handle, None)

    def set_view(self, center: Coordinate, zoom: int) -> None:
        self.center = center
        self.zoom = zoom

    def show_summary(self, summary: ProgressSummary) -> None:
        self.summary = summary

    def build_map(self) -> folium.Map:
        """Render the current state into a folium map."""
        route_map = folium.Map(
            location=self.center.as_list(),
            zoom_start=self.zoom,
            tiles=None,
        )

        folium.TileLayer(
            tiles="OpenStreetMap",
            attr=(
                "&copy; <a href='https://www.openstreetmap.org/copyright'>OpenStreetMap</a> "
                "contributors"
            ),
            name="Standard",
            control=False,
        ).add_to(route_map)

        for artifact in self._overlays.values():
            style = artifact.style
            folium.PolyLine(
                [coord.as_list() for coord in artifact.coordinates],
                color=style.color,
                weight=style.weight,
                opacity=style.opacity,
                dash_array=style.dash_array,
                tooltip=artifact.name.replace("_", " ").capitalize(),
            ).add_to(route_map)

        folium.Marker(
            self.params.start.as_list(),
            popup="Start",
            icon=folium.Icon(color=self.styles.start_marker_color, icon="play"),
        ).add_to(route_map)

        folium.Marker(
            self.params.end.as_list(),
            popup="Destination",
            icon=folium.Icon(color=self.styles.end_marker_color, icon="stop"),
        ).add_to(route_map)

        folium.Marker(
            self.params.vehicle_location.as_list(),
            popup="Vehicle",
            icon=folium.Icon(
                color=self.styles.vehicle_marker_color,
                icon=self.styles.vehicle_icon,
                prefix="fa",
            ),
        ).add_to(route_map)

        if self.summary is not None:
            route_map.add_child(
                ProgressLegend(self.summary, self.params.is_routing, self.styles)
            )

        return route_map

    def render(self) -> str:
        """Return the map as a standalone HTML document."""
        return self.build_map().get_root().render()

    def save(self, output_filename: str) -> None:
        self.build_map().save(output_filename)
        logger.debug(
            f"Map saved to {output_filename} with {len(self._overlays)} overlays"
        )
