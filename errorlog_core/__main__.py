"""
Run the queue worker in the foreground.

    python -m errorlog_core [--log-level LEVEL] [--once]
"""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from .config import get_config
from .constants import LogLevel
from .exceptions import BaseError
from .pipeline import ErrorLogPipeline
from .utils.json_utils import dumps
from .utils.logger import configure_logging


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="errorlog_core", description="Drain the error queue into the durable store."
    )
    parser.add_argument(
        "--log-level",
        choices=[level.value for level in LogLevel],
        type=str.upper,
        help="Override LOG_LEVEL",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single dequeue/persist cycle and exit",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logger = configure_logging("queue-worker", args.log_level)

    try:
        pipeline = ErrorLogPipeline(get_config())
    except BaseError as e:
        logger.error("Failed to start error log pipeline", extra={"error_code": e.error_code.value})
        return 1

    logger.info("Pipeline health", extra={"health": dumps(pipeline.health())})

    if args.once:
        try:
            persisted = pipeline.worker.run_once()
            logger.info("Single cycle finished", extra={"persisted": persisted})
        finally:
            pipeline.shutdown()
        return 0

    stop_requested = threading.Event()

    def _request_stop(signum, frame):
        logger.info("Shutdown requested", extra={"signal": signal.Signals(signum).name})
        stop_requested.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    pipeline.start()
    try:
        while not stop_requested.wait(1.0):
            pass
    finally:
        pipeline.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
