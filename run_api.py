#!/usr/bin/env python3
"""
Script to run the Library API server.
"""

import uvicorn
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

import structlog

from api.config import config as api_config
from utilities.config import config
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)


def main():
    """Run the API server."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug,
    )
    logger.info(
        "Starting Library API server",
        host=api_config.host,
        port=api_config.port,
        debug=api_config.debug,
        database=config.mongodb_database,
    )

    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=api_config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
