#!/usr/bin/env python3
"""
domtbl Pipeline Utilities Module
"""
from .file import ensure_dir, safe_open, truncate_file, find_domtbl_files
from .sequence import SequenceStore, write_fasta_record
from .reports import (
    format_evalue, format_score, write_rows,
    write_hit_report, write_recovery_report
)

__all__ = [
    # File utilities
    'ensure_dir', 'safe_open', 'truncate_file', 'find_domtbl_files',

    # Sequence utilities
    'SequenceStore', 'write_fasta_record',

    # Report utilities
    'format_evalue', 'format_score', 'write_rows',
    'write_hit_report', 'write_recovery_report'
]
