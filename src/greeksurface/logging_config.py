"""
Logging Configuration
Sets up the 'greeksurface' logger for the application.

The level can be given as an int or a name ("DEBUG"), and the
GREEKSURFACE_LOG_LEVEL environment variable overrides it at startup.
"""
import logging
import os
import sys
from typing import Optional, Union

ENV_LEVEL = "GREEKSURFACE_LOG_LEVEL"

# Chatty below WARNING, drowns the rebuild log otherwise
NOISY_LIBRARIES = ("matplotlib", "pyvista", "vtkmodules", "PIL")


def resolve_level(level: Union[int, str]) -> int:
    """
    Turns a level name or number into a logging level.

    Raises:
        ValueError: If the name is not a known logging level.
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return resolved


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the package logger: stdout handler plus an optional file.

    Args:
        level: Logging level (e.g. logging.DEBUG or "DEBUG").
        log_file: Optional path to save logs to a file.

    Returns:
        The configured 'greeksurface' logger.
    """
    env_level = os.environ.get(ENV_LEVEL)
    level = resolve_level(env_level if env_level else level)

    logger = logging.getLogger("greeksurface")
    logger.setLevel(level)

    # Re-running setup (tests, app restart) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    # 1. Console
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # 2. File (optional)
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # 3. Third-party loggers stay at WARNING unless we debug ourselves
    if level > logging.DEBUG:
        for name in NOISY_LIBRARIES:
            logging.getLogger(name).setLevel(logging.WARNING)

    logger.info(f"Logging initialized at {logging.getLevelName(level)}.")
    return logger
