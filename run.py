#!/usr/bin/env python3
"""
PG Bank API Entry Point

Starts the FastAPI server with the in-memory ledger.
"""

import sys

from pgbank.config import get_config
from pgbank.logging_config import setup_logging
from pgbank.api import run_server


if __name__ == "__main__":
    config = get_config()
    logger = setup_logging(config.log_level, config.log_format)
    logger.info(f"PG Bank API listening on {config.api_host}:{config.api_port}")

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            log_level=config.log_level.lower()
        )
    except KeyboardInterrupt:
        logger.info("Shutting down PG Bank API")
    except Exception as e:
        logger.critical(f"Error starting server: {e}")
        sys.exit(1)
