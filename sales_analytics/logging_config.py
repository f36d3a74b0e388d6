# sales_analytics/logging_config.py
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def configure_logging(level: str = "INFO"):
    """Sets up a single stream handler; calling it again only adjusts the level."""
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger("sales_analytics").setLevel(level.upper())
