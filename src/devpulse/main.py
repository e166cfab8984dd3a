"""Application orchestration for the DevPulse dashboard report."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .cli import parse_args
from .client import DashboardClient, parse_activity
from .config import load_config
from .dashboard import DashboardInputs, build_dashboard, fetch_dashboard_inputs
from .errors import AuthenticationError, ConfigurationError, FetchFailure, MalformedRecordError
from .models import ActivityRecord
from .report import generate_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_FETCH = 4
EXIT_MALFORMED = 5


def load_activities_file(path: Path) -> List[ActivityRecord]:
    """Load activity records from a JSON export.

    The file holds either a list of activity objects or the API's
    ``{"activities": [...]}`` envelope.

    Raises:
        MalformedRecordError: If the file is not valid JSON or has another shape.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedRecordError(f"Activities file is not valid JSON: {path}") from exc

    if isinstance(data, dict):
        data = data.get("activities")
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise MalformedRecordError(f"Activities file must contain a list of activity objects: {path}")

    return [parse_activity(item) for item in data]


def orchestrate_dashboard(argv: Optional[Sequence[str]] = None) -> int:
    """Run the end-to-end dashboard report flow and return a process exit code.

    Exit codes: 0 success, 1 unexpected error, 2 configuration error,
    3 authentication error, 4 fetch failure, 5 malformed data.
    """
    try:
        args = parse_args(argv)
        logging.basicConfig(
            level=getattr(logging, args.log_level, logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        offline = args.activities_file is not None
        config = load_config(
            api_url=args.api_url,
            heatmap_days=args.heatmap_days,
            summary_days=args.summary_days,
            weeks=args.weeks,
            months=args.months,
            top_n=args.top,
            source=args.source,
            require_token=not offline,
        )

        if offline:
            print(f"Building dashboard from '{args.activities_file}'...")
            records = load_activities_file(Path(args.activities_file))
            inputs = DashboardInputs.from_activities(records, config)
        else:
            print(f"Fetching dashboard data from '{config.api_url}'...")
            client = DashboardClient(config=config)
            inputs = fetch_dashboard_inputs(client, config)

        dashboard = build_dashboard(inputs, config)
        print(generate_report(dashboard))
        return EXIT_OK
    except AuthenticationError as exc:
        logger.error("Authentication error: %s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except FetchFailure as exc:
        logger.error("Fetch failure: %s", exc, extra={"status_code": exc.status_code})
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FETCH
    except MalformedRecordError as exc:
        logger.error("Malformed data: %s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_MALFORMED
    except OSError as exc:
        logger.error("I/O error: %s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except Exception:
        logger.exception("Unexpected error while building the dashboard")
        print("ERROR: Unexpected error while building the dashboard.", file=sys.stderr)
        return EXIT_UNEXPECTED


def main() -> None:
    """Console-script entry point."""
    sys.exit(orchestrate_dashboard())


if __name__ == "__main__":
    main()
