"""Logger setup shared by every component"""

import logging
from typing import Union

from rich.logging import RichHandler

_ROOT_LOGGER_NAME = "azurepreview"


def setup_logger(name: str, level: Union[str, int, None] = None) -> logging.Logger:
    """Return a child logger of the package logger, installing a rich handler once"""

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False

    if level is not None:
        root.setLevel(level)

    return root.getChild(name)
