"""
heartline.__main__ — Entry point for ``python -m heartline``
=============================================================

Wiring:
1. Load .env (secrets, DATABASE_URL).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Serve the API with uvicorn on ``api_port``.
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

from heartline.config import load_config
from heartline.database.engine import create_db_engine, init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("heartline")


def main() -> None:
    """Bootstrap the schema and run the Heartline API."""
    load_dotenv()

    if not os.getenv("DATABASE_URL"):
        logger.critical(
            "DATABASE_URL is not set.  Copy .env.example → .env and fill it in."
        )
        sys.exit(1)

    cfg = load_config(required=False)
    logger.info("Config loaded — Community: %s", cfg.community_name)

    init_db(create_db_engine())

    logger.info("Starting Heartline API on port %d…", cfg.api_port)
    uvicorn.run("heartline.api.main:app", host="0.0.0.0", port=cfg.api_port, log_config=None)


if __name__ == "__main__":
    main()
