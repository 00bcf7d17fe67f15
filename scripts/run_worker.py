"""
Long-running pipeline worker (the process behind WORKER_CONCURRENCY).

Usage:
    python scripts/run_worker.py            # run until SIGINT / SIGTERM
    python scripts/run_worker.py --once     # drain the queue and exit
"""

import argparse
import logging
import signal
import sys
from pathlib import Path

# Ensure project root is on sys.path so `leadpipe` imports without an install.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from leadpipe.orchestrator import build_pipeline_from_env

logger = logging.getLogger("leadpipe.run_worker")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run leadpipe job workers.")
    parser.add_argument("--once", action="store_true", help="drain the queue and exit")
    parser.add_argument("--init-schema", action="store_true", help="create tables before starting")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    pipeline = build_pipeline_from_env()
    if args.init_schema:
        pipeline.init_schema()

    if args.once:
        outcomes = pipeline.pool.run_until_idle()
        failed = sum(1 for o in outcomes if not o.ok)
        logger.info("Drained %s jobs (%s failed)", len(outcomes), failed)
        return 0

    def _shutdown(signum, _frame):
        logger.info("Signal %s received, stopping after in-flight jobs", signum)
        pipeline.pool.stop()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)
    pipeline.pool.run_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
