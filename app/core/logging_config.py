import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)

    # SQL echo is noisy; keep it opt-in
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
