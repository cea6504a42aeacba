#!/usr/bin/env python3
"""
Filename utilities for the generated HTML map.
"""

import os
import tempfile
import logging

logger = logging.getLogger(__name__)

DEFAULT_BASE_NAME = "route progress map"
MAX_ATTEMPTS = 100


def generate_output_filename(directory: str = "", base_name: str = DEFAULT_BASE_NAME) -> str:
    """
    Generates an output HTML filename and reserves it by creating an empty file.

    Tries "<base_name>.html", then "<base_name> (1).html", "<base_name> (2).html"
    and so on, using exclusive open (`open(path, 'x')`) so that the name is
    reserved without racing other processes.

    Args:
        directory: Directory for the output file (default: current directory)
        base_name: File name without extension

    Returns:
        Filename that has been created as an empty file to reserve it

    Raises:
        RuntimeError: If no available filename is found after MAX_ATTEMPTS tries
        ValueError: If a file cannot be created (permissions, invalid name)
    """
    candidates = [f"{base_name}.html"] + [
        f"{base_name} ({i}).html" for i in range(1, MAX_ATTEMPTS + 1)
    ]
    for name in candidates:
        candidate = os.path.join(directory, name)
        try:
            with open(candidate, "x"):
                pass
            return candidate
        except FileExistsError:
            continue
        except OSError as e:
            logger.error(f"Cannot create file {candidate}: {e}")
            raise ValueError(f"Cannot create file: {e}")

    logger.error(
        f"Could not find an available filename after {MAX_ATTEMPTS} attempts. "
        f"Please clean up the output directory or specify --output explicitly."
    )
    raise RuntimeError(f"No available filename found after {MAX_ATTEMPTS} attempts")


def write_text_atomically(path: str, text: str) -> None:
    """
    Replace the contents of path in one step.

    The text is written to a temporary file in the same directory which then
    replaces path, so a browser reloading the map never sees a partial file.
    """
    dir_name = os.path.dirname(os.path.abspath(path)) or "."
    fd, tmp_path = tempfile.mkstemp(prefix=".map_", suffix=".html", dir=dir_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        raise
