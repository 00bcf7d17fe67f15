# flows/bootstrap_db.py
from __future__ import annotations

import json
from typing import List

from dotenv import load_dotenv
from prefect import flow, get_run_logger, task
from sqlalchemy import inspect

from leadpipe.config import Settings
from leadpipe.db import init_schema, make_engine


@task
def apply_schema(database_url: str) -> List[str]:
    engine = make_engine(database_url)
    try:
        init_schema(engine)
        return sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()


@flow(name="bootstrap-db", persist_result=False)
def bootstrap_db() -> str:
    """Create every leadpipe table and index (idempotent)."""
    logger = get_run_logger()
    logger.info("Ensuring leadpipe schema...")

    load_dotenv()
    tables = apply_schema(Settings.from_env().database_url)

    logger.info(json.dumps({"event": "bootstrap_db_complete", "tables": tables}, sort_keys=True))
    return "ok"


if __name__ == "__main__":
    bootstrap_db()
