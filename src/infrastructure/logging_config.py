import logging


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"


def setup_logging(log_level: str = "INFO") -> None:
    """Configure the root logger with a single console handler.

    Calling it again only changes the level, so the app factory can be
    invoked several times (tests do) without duplicating output.
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    # Every upstream request is already logged by the service layer
    logging.getLogger("httpx").setLevel(logging.WARNING)
