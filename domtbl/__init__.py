#!/usr/bin/env python3
"""
domtbl - marker hit aggregation for HMMER domain tables

Collects per-taxon hmmsearch --domtblout results, filters them against
per-marker score cutoffs and writes per-marker unaligned FASTA files.
"""

__version__ = '0.1.0'
__license__ = 'MIT'

from .exceptions import DomtblError
from .error_handlers import handle_exceptions

__all__ = ['DomtblError', 'handle_exceptions']
