import logging


def create_logger(level: int) -> logging.Logger:
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    formatter = logging.Formatter(log_format)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logger_ = logging.getLogger("dartleague")
    logger_.setLevel(level)
    if not logger_.handlers:
        logger_.addHandler(handler)
    return logger_


logger = create_logger(logging.INFO)
