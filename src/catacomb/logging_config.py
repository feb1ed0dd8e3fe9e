import logging
import os

LOG_LEVEL_ENV = "CATACOMB_LOG_LEVEL"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def configure_logging(default_level: int = logging.INFO) -> None:
    """Configure the root logger for scripts and tools embedding the generator.

    Respects CATACOMB_LOG_LEVEL if present. Library modules only create
    module-level loggers and never install handlers themselves.
    """
    level = default_level
    level_name = os.getenv(LOG_LEVEL_ENV)
    if level_name:
        level = getattr(logging, level_name.upper(), default_level)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # urllib3 stays at WARNING or above
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))
