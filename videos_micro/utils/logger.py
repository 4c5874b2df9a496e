import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger once at startup.

    Console output is always on. With a log directory, errors also go to
    error.log and everything goes to combined.log.
    """
    root = logging.getLogger()
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    root.setLevel(level.upper())

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        known = {getattr(h, "baseFilename", None) for h in root.handlers}
        formatter = logging.Formatter(LOG_FORMAT)

        for filename, handler_level in (("error.log", logging.ERROR), ("combined.log", logging.NOTSET)):
            path = os.path.abspath(os.path.join(log_dir, filename))
            if path in known:
                continue
            handler = logging.FileHandler(path)
            handler.setLevel(handler_level)
            handler.setFormatter(formatter)
            root.addHandler(handler)

    return root
