import logging
import os
from typing import Optional

def setup_logging(level: Optional[str] = None) -> None:
    """
    Console logging for the pencils CLI.
    - Level comes from the argument, then the LOG_LEVEL env var, then INFO.
    - Library modules only create loggers; handlers are installed here.
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    # Unknown names fall back to INFO
    level_value = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        level=level_value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
