#!/usr/bin/env python3
"""
Live route progress tracker.

Fetches the route between a start and an end point from an OSRM server, shows
how far a vehicle has progressed along it, and keeps an interactive HTML map
up to date on a fixed refresh interval.

Requirements:
    pip install requests polyline folium

"""

from typing import Optional
import argparse
import asyncio
import logging
import os
import sys
import webbrowser

from . import __version__
from .config import DEFAULT_OSRM_URL, GEOMETRY_FORMATS, TrackerConfig
from .file_utils import generate_output_filename, write_text_atomically
from .geometry import Coordinate
from .osrm import OSRMClient
from .overlay import OverlayManager
from .progress import ProgressSummary
from .route import TrackingParams
from .scheduler import RefreshScheduler
from .visualization import FoliumSurface

# Configure logging
logger = logging.getLogger("route_progress")

OSRM_URL_ENV = "ROUTE_PROGRESS_OSRM_URL"


def parse_coordinate(text: str) -> Coordinate:
    """argparse type for "lat,lon" arguments."""
    try:
        return Coordinate.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Live route progress tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Coordinates are given as LAT,LON. Use the --start=-33.86,151.20 form "
            "for negative latitudes."
        ),
    )
    parser.add_argument(
        "--start",
        type=parse_coordinate,
        required=True,
        help="Route origin as LAT,LON",
    )
    parser.add_argument(
        "--end",
        type=parse_coordinate,
        required=True,
        help="Route destination as LAT,LON",
    )
    parser.add_argument(
        "--vehicle",
        type=parse_coordinate,
        required=True,
        help="Current vehicle position as LAT,LON",
    )
    parser.add_argument(
        "--returning",
        action="store_true",
        help="Measure the vehicle leg back to the start instead of to the end",
    )
    parser.add_argument(
        "--osrm-url",
        type=str,
        default=os.environ.get(OSRM_URL_ENV, DEFAULT_OSRM_URL),
        help=f"OSRM server base URL (default: ${OSRM_URL_ENV} or {DEFAULT_OSRM_URL})",
    )
    parser.add_argument(
        "--profile",
        type=str,
        default="driving",
        help="OSRM routing profile (default: driving)",
    )
    parser.add_argument(
        "--geometries",
        type=str,
        default="polyline",
        choices=GEOMETRY_FORMATS,
        help="Route geometry format requested from OSRM (default: polyline)",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=60.0,
        help="Refresh interval in seconds (default: 60)",
    )
    parser.add_argument(
        "--cycles",
        type=int,
        default=0,
        help="Stop after this many refreshes; 0 runs until interrupted (default: 0)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="OSRM request timeout in seconds (default: 10)",
    )
    parser.add_argument(
        "--zoom",
        type=int,
        default=10,
        help="Map zoom level centred on the vehicle (default: 10)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output HTML map file (default: auto-generated in the current directory)",
    )
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="Don't automatically open the HTML file in browser",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics after each refresh",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"route-progress {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> TrackerConfig:
    return TrackerConfig(
        osrm_base_url=args.osrm_url,
        profile=args.profile,
        geometries=args.geometries,
        request_timeout=args.timeout,
        refresh_interval=args.interval,
        zoom=args.zoom,
        log_level=args.log_level,
        metrics=args.metrics,
    )


def setup_logging(config: TrackerConfig) -> None:
    """Setup logging configuration."""
    level = getattr(logging, config.log_level)

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    # Create console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Suppress overly verbose third-party logging
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def open_file_in_browser(filename: str) -> None:
    """
    Open the specified file in the default browser.

    Args:
        filename: Path to the file to open
    """
    abs_path = os.path.abspath(filename)
    try:
        webbrowser.open(f"file://{abs_path}")
        logger.debug(f"Opening {abs_path} in your default browser...")
    except Exception as e:
        logger.warning(f"Could not automatically open browser: {e}")
        logger.warning(f"Please manually open {abs_path}")


def format_summary(summary: ProgressSummary, is_routing: bool) -> str:
    """Format a summary as the lines printed after each refresh."""
    leg_label = "Vehicle -> destination" if is_routing else "Vehicle -> origin"
    lines = [
        f"Start -> destination:   {summary.total_distance_km} km",
        f"{leg_label + ':':<24}{summary.vehicle_to_target_km} km",
        f"Progress:               {summary.progress_percent}%",
        f"Estimated time (leg):   {summary.estimated_time}",
        f"Total estimated time:   {summary.total_estimated_time}",
    ]
    if summary.route_undetermined:
        lines.append("Could not determine the route. Check the start and end points.")
    return "\n".join(lines)


async def track(
    params: TrackingParams,
    config: TrackerConfig,
    output_filename: str,
    cycles: int = 0,
    open_browser: bool = False,
    client: Optional[OSRMClient] = None,
) -> Optional[ProgressSummary]:
    """
    Run the tracker, rewriting the HTML map after every applied refresh.

    Args:
        params: Tracking parameters
        config: Tracker configuration
        output_filename: HTML map to keep up to date
        cycles: Number of applied refreshes before returning; 0 runs forever
        open_browser: Open the map after the first refresh
        client: Route fetch adapter (default: OSRMClient for config)

    Returns:
        The last published summary
    """
    surface = FoliumSurface(params, config.styles)
    published: asyncio.Queue = asyncio.Queue()

    def sink(summary: ProgressSummary) -> None:
        surface.show_summary(summary)
        published.put_nowait(summary)

    summary = None
    applied = 0
    async with RefreshScheduler(
        client or OSRMClient(config), OverlayManager(surface), sink, config
    ) as scheduler:
        await scheduler.start(params)
        while cycles == 0 or applied < cycles:
            summary = await published.get()
            applied += 1
            print(format_summary(summary, params.is_routing))
            print()
            write_text_atomically(output_filename, surface.render())
            logger.info(f"Refresh {applied}: map written to {output_filename}")
            if applied == 1 and open_browser:
                open_file_in_browser(output_filename)

    return summary


def main():
    """
    Parses command-line arguments and runs the tracker until interrupted or
    until the requested number of refreshes has been applied.
    """
    parser = create_argument_parser()
    args = parser.parse_args()

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))
    if args.cycles < 0:
        parser.error(f"--cycles must be 0 or greater, got {args.cycles}")

    # Setup logging
    setup_logging(config)

    try:
        output_filename = args.output or generate_output_filename()
        logger.debug(f"Output filename: {output_filename}")
    except (RuntimeError, ValueError):
        sys.exit(1)

    params = TrackingParams(
        start=args.start,
        end=args.end,
        vehicle_location=args.vehicle,
        is_routing=not args.returning,
    )

    try:
        asyncio.run(
            track(
                params,
                config,
                output_filename,
                cycles=args.cycles,
                open_browser=not args.no_open,
            )
        )
    except KeyboardInterrupt:
        logger.info("Tracking stopped")
    except OSError as e:
        logger.error(f"Failed to write map: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
