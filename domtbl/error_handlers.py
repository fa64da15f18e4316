#!/usr/bin/env python3
"""
Error handling for the domtbl command line.

Failures are reported as one line naming the error kind, the message and,
when known, the offending ``file:line``, followed by a hint for the error
kinds a user can fix by changing inputs.
"""
import sys
import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from .exceptions import (
    ConfigurationError, DomtblError, FileOperationError, IndexConsistencyError,
    MalformedRecordError, SequenceNotFoundError, UnknownMarkerError
)

T = TypeVar('T')

EXIT_ERROR = 1
EXIT_UNEXPECTED = 2
EXIT_INTERRUPTED = 130

# Checked in order, so subclasses come first
ERROR_HINTS = (
    (MalformedRecordError, "Domain tables must be hmmsearch --domtblout output in UTF-8"),
    (UnknownMarkerError, "Select cutoffs built for the same marker set as the domain tables"),
    (IndexConsistencyError, "This is a bug in domtbl; please report it with the input file"),
    (SequenceNotFoundError, "Check that --proteins covers every taxon"),
    (ConfigurationError, "Run 'domtbl cutoffs' to list the available cutoff presets"),
    (FileOperationError, "Check that the path exists and is readable"),
)


def error_location(error: DomtblError) -> Optional[str]:
    """``file:line`` (or just ``file``) from an error's details, if known"""
    details = error.details or {}
    source = details.get("source") or details.get("file_path") or details.get("directory")
    if not source:
        return None
    line_number = details.get("line_number")
    return f"{source}:{line_number}" if line_number is not None else str(source)


def error_hint(error: DomtblError) -> Optional[str]:
    for kind, hint in ERROR_HINTS:
        if isinstance(error, kind):
            return hint
    return None


def format_error(error: Exception, verbose: bool = False) -> str:
    """Format an error message for display

    Args:
        error: Exception object
        verbose: Whether to include the details dictionary

    Returns:
        Formatted error message
    """
    if not isinstance(error, DomtblError):
        return f"Unexpected Error ({error.__class__.__name__}): {str(error)}"

    msg = f"{error.__class__.__name__}: {error.message}"
    location = error_location(error)
    if location and location not in error.message:
        msg += f" [{location}]"
    hint = error_hint(error)
    if hint:
        msg += f"\nHint: {hint}"
    if verbose and error.details:
        msg += f"\nDetails: {error.details}"
    return msg


def handle_exceptions(exit_on_error: bool = False) -> Callable[[Callable[..., T]], Callable[..., Union[T, int]]]:
    """Decorator turning exceptions into CLI exit codes

    ``DomtblError`` maps to 1, anything else to 2 and an interrupt to 130.

    Args:
        exit_on_error: Call sys.exit with the code instead of returning it
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Union[T, int]]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Union[T, int]:
            logger = logging.getLogger(func.__module__)
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                logger.info("Operation cancelled by user")
                print("\nOperation cancelled by user", file=sys.stderr)
                code = EXIT_INTERRUPTED
            except DomtblError as e:
                log_exception(logger, e)
                print(format_error(e), file=sys.stderr)
                code = EXIT_ERROR
            except Exception as e:
                log_exception(logger, e)
                print(format_error(e), file=sys.stderr)
                print("See log for details. Run with --verbose for more information.", file=sys.stderr)
                code = EXIT_UNEXPECTED

            if exit_on_error:
                sys.exit(code)
            return code
        return wrapper
    return decorator


def log_exception(logger: logging.Logger,
                  error: Exception,
                  level: int = logging.ERROR,
                  context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with context

    Known errors are logged with their location and details; unexpected
    ones with a traceback.

    Args:
        logger: Logger instance
        error: Exception object
        level: Logging level
        context: Additional context for the log
    """
    if isinstance(error, DomtblError):
        ctx = {**(error.details or {}), **(context or {})}
        location = error_location(error)
        suffix = f" [{location}]" if location and location not in error.message else ""
        logger.log(level, f"{error.__class__.__name__}: {error.message}{suffix}",
                   extra={"context": ctx} if ctx else None)
    else:
        logger.log(level, f"Unexpected error: {str(error)}",
                   extra={"context": context} if context else None,
                   exc_info=True)
