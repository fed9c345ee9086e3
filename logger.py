import logging

import config

SERVICE_NAME = "post_likes"

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str = SERVICE_NAME) -> logging.Logger:
    """Return the service logger, writing to stderr at ``config.LOG_LEVEL``.

    Calling it again for the same name does not add a second handler.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=FORMAT))
        logger.addHandler(handler)
        # uvicorn configures the root logger; keep lines from printing twice
        logger.propagate = False
    logger.setLevel(config.LOG_LEVEL)
    return logger
