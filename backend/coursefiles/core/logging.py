import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "urllib3", "sqlalchemy.engine")


def setup_logging(level: str = "INFO") -> None:
    """Console logging for the service; third-party chatter is kept at WARNING."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    
    # Replace handlers installed by a previous call (tests build several apps)
    for handler in list(root.handlers):
        if getattr(handler, "_coursefiles", False):
            root.removeHandler(handler)
    
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._coursefiles = True
    root.addHandler(handler)
    
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
