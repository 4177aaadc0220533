import logging


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
    )
    # httpx logs every request at INFO, which drowns out the relay logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("relaybot")
