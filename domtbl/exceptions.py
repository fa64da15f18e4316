#!/usr/bin/env python3
"""
Exception hierarchy for the domtbl aggregation pipeline.
All custom exceptions should inherit from DomtblError.
"""
from typing import Dict, Any, Optional


class DomtblError(Exception):
    """Base exception for all domtbl-related errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize with error message and optional details

        Args:
            message: Error message
            details: Optional details dictionary with context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(DomtblError):
    """Error related to configuration issues"""
    pass


class FileOperationError(DomtblError):
    """Error during file operations"""
    pass


class ValidationError(DomtblError):
    """Data validation error"""
    pass


class MalformedRecordError(ValidationError):
    """A domtbl line could not be parsed into a hit"""
    pass


class UnknownMarkerError(ValidationError):
    """A marker observed in the data has no score cutoff"""

    def __init__(self, marker: str, details: Optional[Dict[str, Any]] = None):
        self.marker = marker
        super().__init__(f"No score cutoff for marker: {marker}",
                         {"marker": marker, **(details or {})})


class IndexConsistencyError(ValidationError):
    """A hit index violates its own invariants"""
    pass


class SequenceNotFoundError(DomtblError):
    """A target identifier is absent from the sequence store"""

    def __init__(self, identifier: str, details: Optional[Dict[str, Any]] = None):
        self.identifier = identifier
        super().__init__(f"Sequence not found: {identifier}",
                         {"identifier": identifier, **(details or {})})


class PipelineError(DomtblError):
    """Error in pipeline processing"""
    pass
