#!/usr/bin/env python3
"""
File system utilities for the domtbl pipeline.
Provides safe file operations with error handling.
"""
import os
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, List, Optional

from domtbl.exceptions import FileOperationError

logger = logging.getLogger("domtbl.utils.file")


def find_domtbl_files(directory: str, extension: str = "domtbl") -> List[str]:
    """List domain tables in a directory

    Args:
        directory: Directory to search (not recursive)
        extension: File extension without the leading dot

    Returns:
        Sorted list of absolute file paths

    Raises:
        FileOperationError: If the directory does not exist or can't be read
    """
    if not os.path.isdir(directory):
        raise FileOperationError(f"Not a directory: {directory}", {"directory": directory})

    suffix = "." + extension.lstrip(".")
    try:
        paths = [p.resolve() for p in Path(directory).iterdir()
                 if p.is_file() and p.suffix == suffix]
    except OSError as e:
        raise FileOperationError(f"Error listing {directory}: {str(e)}",
                                 {"directory": directory}) from e

    logger.debug(f"Found {len(paths)} *{suffix} files in {directory}")
    return sorted(str(p) for p in paths)


def ensure_dir(directory: str) -> bool:
    """Ensure a directory exists, creating it if necessary

    Args:
        directory: Directory path

    Returns:
        True if successful

    Raises:
        FileOperationError: If directory cannot be created
    """
    try:
        if not os.path.exists(directory):
            logger.debug(f"Creating directory: {directory}")
            os.makedirs(directory, exist_ok=True)
        return True
    except OSError as e:
        error_msg = f"Error creating directory {directory}: {str(e)}"
        logger.error(error_msg)
        raise FileOperationError(error_msg, {"directory": directory}) from e


@contextmanager
def safe_open(file_path: str, mode: str = 'r', encoding: Optional[str] = None,
              newline: Optional[str] = None) -> Generator[Any, None, None]:
    """Safely open a file with error handling

    Args:
        file_path: Path to the file
        mode: File open mode
        encoding: File encoding
        newline: Newline handling, passed to open()

    Yields:
        Open file object

    Raises:
        FileOperationError: If file cannot be opened
    """
    try:
        parent = os.path.dirname(file_path)
        if ('w' in mode or 'a' in mode) and parent:
            ensure_dir(parent)

        logger.debug(f"Opening file: {file_path} (mode: {mode})")
        file = open(file_path, mode, encoding=encoding, newline=newline)
    except OSError as e:
        error_msg = f"Error accessing file {file_path}: {str(e)}"
        logger.error(error_msg)
        raise FileOperationError(error_msg, {"file_path": file_path, "mode": mode}) from e

    try:
        yield file
    except OSError as e:
        error_msg = f"Error accessing file {file_path}: {str(e)}"
        logger.error(error_msg)
        raise FileOperationError(error_msg, {"file_path": file_path, "mode": mode}) from e
    finally:
        file.close()
        logger.debug(f"Closed file: {file_path}")


def truncate_file(file_path: str) -> None:
    """Create or empty a file"""
    with safe_open(file_path, 'w'):
        pass
