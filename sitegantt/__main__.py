"""
SiteGantt Schedule Engine
=========================

Command line entry point: runs the sample construction project.
"""

import argparse
import sys

from sitegantt.examples.construction_project import main as run_example
from sitegantt.utils.logger import configure_logging, get_logger


def main():
    parser = argparse.ArgumentParser(description="Construction Gantt schedule engine")
    parser.add_argument(
        "--example", action="store_true", help="Run the example project"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="sitegantt_output.png",
        help="Output filename for the Gantt chart",
    )
    parser.add_argument(
        "--scurve",
        type=str,
        default=None,
        help="Optional output filename for the S-curve chart",
    )
    parser.add_argument(
        "--log-level", type=str, default=None, help="Logging level (default: INFO)"
    )

    args = parser.parse_args()
    configure_logging(args.log_level)
    logger = get_logger("cli")

    if args.example:
        print("Running example project...")
        logger.debug("Writing Gantt chart to %s", args.output)
        run_example(args.output, args.scurve)
        print(f"Visualization saved to {args.output}")
        if args.scurve:
            print(f"S-curve saved to {args.scurve}")
        return 0
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
