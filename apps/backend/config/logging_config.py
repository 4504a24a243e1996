"""
Environment-specific logging configuration
"""
import os
from typing import Dict, Any, Optional


def get_logging_config() -> Dict[str, Any]:
    """Get logging configuration based on environment"""

    # Detect environment
    is_production = os.getenv("RENDER") is not None or os.getenv("ENV") == "production"
    is_debug = os.getenv("DEBUG", "false").lower() == "true"

    config = {
        "production": {
            # Production: only milestones and failures
            "default_level": "WARNING",
            "console_format": "%(levelname)s - %(message)s",
            "progress_thresholds": [0, 50, 100],
            "suppress_modules": [
                "services.export.image_loader",
                "services.export.color_sanitizer",
                "services.styling_cache",
            ]
        },
        "development": {
            "default_level": "INFO",
            "console_format": "%(asctime)s - %(levelname)s - %(message)s",
            "progress_thresholds": [0, 25, 50, 75, 100],
            "suppress_modules": []
        },
        "debug": {
            # Debug: Everything
            "default_level": "DEBUG",
            "console_format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
            "progress_thresholds": [0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
            "suppress_modules": []
        }
    }

    if is_debug:
        selected_config = dict(config["debug"])
    elif is_production:
        selected_config = dict(config["production"])
    else:
        selected_config = dict(config["development"])

    selected_config["environment"] = "debug" if is_debug else ("production" if is_production else "development")

    return selected_config


def should_log_progress(percent: int, last_logged: Optional[int], config: Optional[Dict[str, Any]] = None) -> bool:
    """True when an export progress value crosses a configured threshold."""
    if config is None:
        config = get_logging_config()
    thresholds = config.get("progress_thresholds", [0, 100])
    floor = -1 if last_logged is None else last_logged
    return any(floor < t <= percent for t in thresholds)


def apply_logging_config(config: Dict[str, Any] = None):
    """Apply logging configuration to Python's logging system"""
    import logging

    if config is None:
        config = get_logging_config()

    logging.getLogger().setLevel(getattr(logging, config["default_level"]))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(config["console_format"]))

    # Remove existing handlers and add new one
    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.addHandler(console_handler)

    for module in config.get("suppress_modules", []):
        logging.getLogger(module).setLevel(logging.WARNING)

    if config["environment"] == "production":
        # Exporter milestones stay visible even in production
        for module in ("services.export.deck_exporter", "services.export.progress"):
            logging.getLogger(module).setLevel(logging.INFO)

    return config
