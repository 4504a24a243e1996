import logging
from typing import Optional


def setup_logging(level: Optional[str] = None) -> None:
    """Logging setup shared by the export engine, scripts and tests.

    - Applies the environment profile from config.logging_config when no
      explicit level is given
    - Ensures a basic StreamHandler is attached once
    """
    root = logging.getLogger()
    if level is None:
        from config.logging_config import apply_logging_config

        apply_logging_config()
        return

    if not root.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """Return a module logger after ensuring logging is initialized."""
    if not logging.getLogger().handlers:
        setup_logging("INFO")
    return logging.getLogger(name)
