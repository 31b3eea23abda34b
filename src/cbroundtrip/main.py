# The entrypoint for cbroundtrip
# Connects to couchbase, upserts the sample airline, reads it back and prints it

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from prometheus_client import CollectorRegistry, Counter, Gauge, write_to_textfile

from cbroundtrip.airline import SAMPLE_AIRLINE, Airline
from cbroundtrip.config import ClusterConfig, get_credentials
from cbroundtrip.connector import cluster_session, get_collection
from cbroundtrip.exceptions import RoundTripError
from cbroundtrip.log_config import configure_logging, remove_handlers
from cbroundtrip.operations import render_airline, round_trip

# Get a logger with this module's name to help with debugging
logger = logging.getLogger(__name__)

# Create a registry we can write to a file
prom_registry = CollectorRegistry()

prom_duration = Gauge(
    "round_trip_duration",
    "The duration of a round trip run, in seconds",
    registry=prom_registry,
)
prom_successes = Counter(
    "round_trip_success_count",
    "The number of successful round trips",
    registry=prom_registry,
)
prom_failures = Counter(
    "round_trip_failure_count",
    "The number of failed round trips",
    registry=prom_registry,
)
prom_last_success = Gauge(
    "round_trip_last_success_unixtime",
    "Last time a round trip successfully finished",
    registry=prom_registry,
)


def process_cli(argv=None):
    """Processes the following flags

    -c - credentials file path (optional)
    -l - log directory path (optional)
    -m - metrics directory path (optional)
    --json - print the fetched airline as JSON (optional)
    """
    parser = argparse.ArgumentParser(
        description="Upsert an airline document into couchbase and read it back"
    )
    parser.add_argument(
        "-c",
        "--credentials_file",
        type=Path,
        required=False,
        default="config.yaml",
        help="Path to the credentials file",
    )
    parser.add_argument(
        "-l",
        "--log_dir",
        type=Path,
        required=False,
        default=None,
        help="Path to write log files",
    )
    parser.add_argument(
        "-m",
        "--metrics_dir",
        type=Path,
        required=False,
        default=None,
        help="Path to write metrics files",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the fetched airline as a JSON object",
    )
    # get the command line arguments
    args = parser.parse_args(argv)
    return args


def run_job(config: ClusterConfig, airline: Airline = SAMPLE_AIRLINE) -> Airline:
    """Connect, resolve the collection, write the airline and read it back"""
    with cluster_session(config) as cluster:
        collection = get_collection(
            cluster,
            config["cb_bucket"],
            config["cb_scope"],
            config["cb_collection"],
        )
        return round_trip(collection, airline)


def write_metrics(metrics_dir: Path) -> Path:
    metrics_dir.mkdir(parents=True, exist_ok=True)
    prom_file = metrics_dir / "round_trip_metrics.prom"
    logger.info(f"Writing Prometheus metrics to: {prom_file}")
    write_to_textfile(str(prom_file), prom_registry)
    return prom_file


def run_round_trip(argv=None) -> None:
    """entrypoint"""
    args = process_cli(argv)

    runtime = datetime.now()
    logpath = (
        args.log_dir / f"round_trip-{runtime.strftime('%Y-%m-%dT%H:%M:%S%z')}.log"
        if args.log_dir
        else None
    )
    handlers = configure_logging(logpath)
    # explicitly set the prometheus metrics to zero before starting (in multiple runs these can get confused)
    prom_successes._value.set(0)
    prom_failures._value.set(0)

    exit_code = 0
    try:
        logger.info("Getting credentials")
        try:
            config = get_credentials(args.credentials_file)
        except (FileNotFoundError, KeyError, ValueError):
            logger.critical(
                f"Invalid credentials file: {args.credentials_file}", exc_info=True
            )
            prom_failures.inc()
            exit_code = 1
        else:
            try:
                fetched = run_job(config)
            except RoundTripError:
                logger.critical("Round trip failed", exc_info=True)
                prom_failures.inc()
                exit_code = 1
            else:
                print(render_airline(fetched, as_json=args.json))
                prom_successes.inc()
                prom_last_success.set_to_current_time()
    finally:
        duration = datetime.now() - runtime
        logger.info(f"Runtime was {duration.total_seconds()} seconds")
        prom_duration.set(duration.total_seconds())
        if args.metrics_dir:
            write_metrics(args.metrics_dir)
        logger.info(f"exit_code:{exit_code}")
        remove_handlers(handlers)
    sys.exit(exit_code)


if __name__ == "__main__":
    run_round_trip()
