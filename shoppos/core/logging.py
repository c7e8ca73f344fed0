import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    # sqlalchemy echoes every statement at INFO otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
