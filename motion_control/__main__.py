"""
Main entry point when running the motion_control module with python -m.
"""

import argparse
import logging
import sys

from .cli import HEADING_SOURCES, run, setup_logging

if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Simulate a differential drive following a two-waypoint spline"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging with timestamps"
    )
    parser.add_argument(
        "--distance", type=float, default=48.0, help="Travel to the end point in inches (default: 48)"
    )
    parser.add_argument(
        "--lateral",
        type=float,
        default=0.0,
        help="Sideways offset of the end point in inches, right positive (default: 0)",
    )
    parser.add_argument("--backward", action="store_true", help="Drive the path in reverse")
    parser.add_argument(
        "--heading",
        choices=HEADING_SOURCES,
        default="gyro",
        help="Heading feedback source (default: gyro)",
    )
    parser.add_argument(
        "--output-dir", type=str, default=".", help="Base directory for results/ (default: .)"
    )
    parser.add_argument(
        "--plot", action="store_true", help="Save a run summary plot in the run directory"
    )
    args = parser.parse_args()

    setup_logging(args.verbose)

    try:
        run(
            args.distance,
            lateral=args.lateral,
            backward=args.backward,
            heading_source=args.heading,
            output_dir=args.output_dir,
            plot=args.plot,
        )
    except ValueError as e:
        logging.error(f"Invalid run parameters: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logging.info("\nExiting...")
        sys.exit(0)
