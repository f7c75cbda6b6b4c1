import argparse
import json
import logging
import shlex
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import jsonschema

from .bridge import render
from .config import Settings, parse_timeout
from .core import bundled_schema_path, scrape, validate_output
from .registry import BUILTIN_COLLECTORS, default_registry
from .types import CollectorError


def setup_logging(debug=False):
    """Configure logging with the specified debug level."""
    log_level = logging.DEBUG if debug else logging.INFO

    # Configure the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear any existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S%z'
    ))
    root_logger.addHandler(console)

    log = logging.getLogger("chain-exporter")
    log.setLevel(log_level)
    return log


def _collector_flag_dest(name: str) -> str:
    return "collector_" + name.replace("-", "_")


def build_parser() -> argparse.ArgumentParser:
    """Build the command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="chain-exporter",
        description="Scrape blockchain node RPC endpoints into Prometheus metrics."
    )
    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # 'collect' command
    collect_parser = subparsers.add_parser(
        "collect",
        help="Run one scrape across the enabled collectors and output the samples."
    )
    collect_parser.add_argument(
        "--format",
        choices=["prometheus", "json"],
        default="prometheus",
        help="Output format (default: prometheus text exposition)."
    )
    collect_parser.add_argument(
        "--output", "-o",
        help="Output file path (default: stdout).",
        type=Path,
        default=None
    )
    collect_parser.add_argument(
        "--no-validate",
        action="store_false",
        dest="validate",
        help="Disable schema validation of JSON output."
    )
    collect_parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run collectors concurrently instead of one after another."
    )
    collect_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging."
    )
    collect_parser.add_argument(
        "--collector.neo.rpc",
        dest="neo_rpc_url",
        metavar="URL",
        help="neo rpc url (env NEORPC_URL, default http://127.0.0.1:10332)."
    )
    collect_parser.add_argument(
        "--collector.ontology.rpc",
        dest="ontology_rpc_url",
        metavar="URL",
        help="ontology node rpc target (env ONTOLOGY_RPC_URL, default http://127.0.0.1:40336)."
    )
    collect_parser.add_argument(
        "--collector.ontology.subsystem",
        dest="ontology_subsystem",
        metavar="NAME",
        help="Metric subsystem for the ontology height (default: testnet)."
    )
    collect_parser.add_argument(
        "--collector.rpc-timeout",
        dest="rpc_timeout",
        type=parse_timeout,
        metavar="SECONDS",
        help="Deadline for each rpc call (env CHAIN_EXPORTER_RPC_TIMEOUT, default 3)."
    )
    collect_parser.add_argument(
        "--collector.disable-defaults",
        dest="disable_defaults",
        action="store_true",
        help="Disable all collectors that are not explicitly enabled."
    )
    for name, enabled, _ in BUILTIN_COLLECTORS:
        collect_parser.add_argument(
            f"--collector.{name}",
            dest=_collector_flag_dest(name),
            action=argparse.BooleanOptionalAction,
            default=None,
            help=f"Enable the {name} collector (default: {'enabled' if enabled else 'disabled'})."
        )

    # 'list' command
    subparsers.add_parser(
        "list",
        help="List the registered collectors."
    )

    return parser


def _overrides(parsed_args) -> Dict[str, Optional[bool]]:
    return {name: getattr(parsed_args, _collector_flag_dest(name)) for name, _, _ in BUILTIN_COLLECTORS}


def _collect(parsed_args, log: logging.Logger) -> int:
    start_time = datetime.now(timezone.utc)
    log.debug(f"Parsed arguments: {vars(parsed_args)}")

    try:
        settings = Settings.from_env().with_overrides(
            neo_rpc_url=parsed_args.neo_rpc_url,
            ontology_rpc_url=parsed_args.ontology_rpc_url,
            ontology_subsystem=parsed_args.ontology_subsystem,
            rpc_timeout=parsed_args.rpc_timeout,
        )
        registry = default_registry(settings)
        collectors = registry.instantiate(
            log,
            overrides=_overrides(parsed_args),
            disable_defaults=parsed_args.disable_defaults,
        )
    except (CollectorError, ValueError) as e:
        log.error(f"Error: {e}")
        return 1

    if not collectors:
        log.error("No collectors enabled")
        return 1

    log.debug(f"Running {len(collectors)} collectors: {list(collectors)}")

    if parsed_args.format == "json":
        report = scrape(collectors, parallel=parsed_args.parallel)
        result = report.to_dict()
        if parsed_args.validate:
            try:
                validate_output(result, bundled_schema_path())
            except jsonschema.ValidationError as e:
                log.error(f"Scrape report failed schema validation: {e.message}", exc_info=parsed_args.debug)
                return 1
        output = json.dumps(result, indent=2)
    else:
        output = render(collectors, parallel=parsed_args.parallel).decode()

    if parsed_args.output:
        try:
            parsed_args.output.write_text(output)
            log.info(f"Results written to {parsed_args.output}")
        except OSError as e:
            log.error(f"Error writing to {parsed_args.output}: {e}", exc_info=parsed_args.debug)
            return 1
    else:
        sys.stdout.write(output if output.endswith("\n") else output + "\n")

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    log.debug(f"Collection completed in {duration:.2f} seconds")
    return 0


def _list() -> int:
    registry = default_registry(Settings())
    for entry in registry:
        state = "enabled" if entry.enabled_by_default else "disabled"
        print(f"{entry.name}\t{state}")
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    # Allow a single string of arguments
    if isinstance(args, list) and len(args) == 1 and " " in args[0]:
        args = shlex.split(args[0])

    parser = build_parser()
    parsed_args = parser.parse_args(args)

    log = setup_logging(debug=getattr(parsed_args, "debug", False))
    if parsed_args.cmd == "collect":
        return _collect(parsed_args, log)
    if parsed_args.cmd == "list":
        return _list()
    return 0


if __name__ == "__main__":
    sys.exit(main())
