"""Command-line interface for the tube map viewer."""

import argparse
import logging
import sys

from src.logging_config import setup_logging
from src.tube_map.config import DuplicatePolicy, MapConfig
from src.tube_map.errors import TubeMapError
from src.tube_map.linker import build_network
from src.tube_map.loader import DatasetPaths, load_datasets
from src.tube_map.projector import plot_area
from src.tube_map.viewer import create_error_figure, create_figure, export_html, show_figure


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tube Map Viewer - Interactive transit map from CSV tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # View the bundled sample map in a browser
  python -m src.tube_map data/

  # Zoom in 3x around the centre, shifted 100px left
  python -m src.tube_map data/ --zoom 3 --pan -100 0

  # Highlight a station and export to HTML
  python -m src.tube_map data/ --hover 11 --export map.html

  # Fail on repeated station ids instead of keeping the last row
  python -m src.tube_map data/ --strict-ids
        """,
    )

    parser.add_argument(
        "path",
        type=str,
        nargs="?",
        default=None,
        help="Directory holding the CSV tables (default: $TUBE_MAP_DATA_DIR or data/)",
    )
    parser.add_argument("--stations", type=str, metavar="FILE", help="Stations file name")
    parser.add_argument("--connections", type=str, metavar="FILE", help="Connections file name")
    parser.add_argument("--routes", type=str, metavar="FILE", help="Routes file name")
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Window width in pixels (floored at 760)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Window height in pixels (floored at 500)",
    )
    parser.add_argument(
        "--zoom",
        type=float,
        default=1.0,
        help="Initial zoom scale, clamped to [1, 10]",
    )
    parser.add_argument(
        "--pan",
        type=float,
        nargs=2,
        metavar=("DX", "DY"),
        default=None,
        help="Initial pan offset in pixels",
    )
    parser.add_argument(
        "--hover",
        type=str,
        nargs="+",
        metavar="STATION_ID",
        help="Station ids to render highlighted",
    )
    parser.add_argument(
        "--strict-ids",
        action="store_true",
        help="Reject duplicate station ids and route lines",
    )
    parser.add_argument(
        "--export",
        type=str,
        metavar="FILE",
        help="Export to HTML file instead of opening browser",
    )
    parser.add_argument(
        "--title",
        type=str,
        default=None,
        help="Custom title for the visualization",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the tube map CLI."""
    args = build_parser().parse_args(argv)

    # Setup logging
    setup_logging()
    if args.verbose:
        logging.getLogger("src.tube_map").setLevel(logging.DEBUG)

    logger = logging.getLogger(__name__)

    try:
        config = MapConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    data_dir = args.path or config.data_dir
    paths = DatasetPaths.from_dir(
        data_dir,
        stations_file=args.stations or config.stations_file,
        connections_file=args.connections or config.connections_file,
        routes_file=args.routes or config.routes_file,
    )
    policy = DuplicatePolicy.REJECT if args.strict_ids else config.duplicate_policy
    width, height = plot_area(
        args.width if args.width is not None else config.window_width,
        args.height if args.height is not None else config.window_height,
    )
    title = args.title or f"Tube Map: {data_dir}"

    try:
        logger.info(f"Loading datasets from {data_dir}")
        network = build_network(load_datasets(paths), duplicate_policy=policy)
        fig = create_figure(
            network,
            width,
            height,
            hovered=args.hover,
            zoom=args.zoom,
            pan=tuple(args.pan) if args.pan else None,
            title=title,
        )
        exit_code = 0
    except TubeMapError as e:
        logger.error(f"Cannot build map: {e.detail}")
        print(f"Error: {e.detail}", file=sys.stderr)
        fig = create_error_figure(e, title=title)
        exit_code = 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Display or export
    if args.export:
        logger.info(f"Exporting to {args.export}")
        export_html(fig, args.export)
        print(f"Exported to {args.export}")
    else:
        logger.info("Opening in browser")
        show_figure(fig)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
