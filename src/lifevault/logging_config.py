import logging
import os
from typing import Optional


def configure_logging(default_level: int = logging.INFO, level_name: Optional[str] = None) -> None:
    """Configure root logger with a sane default format.

    Respects LIFEVAULT_LOG_LEVEL env var if present; an explicit ``level_name``
    (e.g. from settings) wins over the default but not over the env var.
    """
    level = default_level
    if level_name:
        level = getattr(logging, level_name.upper(), default_level)
    env_level = os.getenv("LIFEVAULT_LOG_LEVEL")
    if env_level:
        level = getattr(logging, env_level.upper(), level)
    root = logging.getLogger()
    # Remove existing handlers to avoid duplicates in repeated CLI/test runs
    for h in list(root.handlers):
        root.removeHandler(h)
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )
