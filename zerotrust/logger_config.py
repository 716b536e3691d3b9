import logging

LOG_FORMAT = "%(levelname)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup for the service. Library modules only call getLogger()."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level}'")
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
