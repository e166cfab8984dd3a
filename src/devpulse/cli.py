"""Command-line argument parsing for the DevPulse dashboard report."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Args:
        value: Raw command-line argument value.

    Returns:
        The validated positive integer.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for dashboard report generation.

    Returns:
        Parsed CLI arguments containing the API URL, window sizes, source
        filter, optional offline activities file and log level.
    """
    parser = argparse.ArgumentParser(
        prog="devpulse-report",
        description=(
            "Build a developer-activity dashboard report (heatmap, trends, "
            "period-over-period deltas and top repositories)."
        ),
    )

    parser.add_argument(
        "--api-url",
        default=None,
        help="DevPulse API base URL (default: $DEVPULSE_API_URL or http://localhost:8080).",
    )
    parser.add_argument(
        "--activities-file",
        default=None,
        help="Build the report offline from a JSON file of activity records instead of the API.",
    )
    parser.add_argument(
        "--heatmap-days",
        type=_positive_int,
        default=365,
        help="Number of days shown in the contribution heatmap (default: 365).",
    )
    parser.add_argument(
        "--summary-days",
        type=_positive_int,
        default=60,
        help="Daily summary window, split into current and previous halves (default: 60).",
    )
    parser.add_argument(
        "--weeks",
        type=_positive_int,
        default=24,
        help="Number of weekly periods to compare (default: 24).",
    )
    parser.add_argument(
        "--months",
        type=_positive_int,
        default=24,
        help="Number of monthly periods to compare (default: 24).",
    )
    parser.add_argument(
        "--top",
        type=_positive_int,
        default=10,
        help="Number of top repositories to list (default: 10).",
    )
    parser.add_argument(
        "--source",
        default=None,
        help="Only include activity from this provider, e.g. 'github' (default: all).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )

    return parser.parse_args(argv)
