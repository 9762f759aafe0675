"""
Helper functions for the local platform: logging and parameter lookup.
"""

import logging
import os
from pathlib import Path

ROOT_LOGGER_NAME = "google-meet-mcp"


def create_logger(
    log_level: str = "INFO",
    logger_name: str = ROOT_LOGGER_NAME,
    logs_dir: str | Path | None = None,
) -> logging.Logger:
    """
    Create a logger that outputs to stderr and optionally to a file.

    The MCP stdio transport owns stdout, so the console handler is always bound
    to stderr.

    Args:
        log_level (str): Logging level (e.g., "INFO", "DEBUG").
        logger_name (str): Name for the logger instance.
        logs_dir (str | Path | None): Directory for log files. If None, only the
            console handler is attached.

    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")

    if not logger.handlers:  # Prevent handler duplication
        console_handler = logging.StreamHandler()  # defaults to sys.stderr
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if logs_dir is not None:
            try:
                logs_path = Path(logs_dir)
                logs_path.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(logs_path / f"{logger_name}.log")
                file_handler.setFormatter(formatter)
                logger.addHandler(file_handler)
            except OSError as e:
                # If file logging fails, just continue with console logging
                logger.warning(f"File logging disabled: {e}")

    return logger


def get_parameters(param_names: list[str] | str) -> dict[str, str | None]:
    """
    Retrieve configuration parameters from the environment.

    Parameters are stored in the environment in uppercase, but the result
    dictionary is keyed by the lowercase name. Empty values are returned as None.

    Args:
        param_names (list[str] | str): The parameter name(s) to retrieve.

    Returns:
        dict[str, str | None]: Mapping of each requested name to its value or None.
    """
    if isinstance(param_names, str):
        param_names = [param_names]

    result: dict[str, str | None] = {}
    for param_name in param_names:
        value = os.getenv(param_name.upper())
        result[param_name.lower()] = value if value else None
    return result


def first_parameter(param_names: list[str]) -> str | None:
    """Return the value of the first parameter in `param_names` that is set."""
    params = get_parameters(param_names)
    for name in param_names:
        value = params.get(name.lower())
        if value:
            return value
    return None
