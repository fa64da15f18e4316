#!/usr/bin/env python3
"""
Tab-delimited report writers for the domtbl pipeline
"""
import csv
import logging
from typing import Iterable, List, Sequence

import numpy as np

from domtbl.utils.file import safe_open

logger = logging.getLogger("domtbl.utils.reports")


def format_evalue(value: float) -> str:
    """Shortest round-trip scientific notation, e.g. 1e-5 or 1.5e-10"""
    return np.format_float_scientific(value, trim='-', exp_digits=1).replace('e+', 'e')


def format_score(value: float) -> str:
    """Shortest round-trip positional notation, e.g. 20 or 20.5"""
    return np.format_float_positional(value, trim='-')


def write_rows(file_path: str, rows: Iterable[Sequence[str]], append: bool = False) -> int:
    """Write tab-delimited rows without a header

    Args:
        file_path: Output file path
        rows: Rows to write
        append: Append instead of truncating

    Returns:
        Number of rows written

    Raises:
        FileOperationError: If the file cannot be written
    """
    count = 0
    with safe_open(file_path, 'a' if append else 'w', newline='') as f:
        writer = csv.writer(f, delimiter='\t', lineterminator='\n')
        for row in rows:
            writer.writerow(row)
            count += 1

    logger.debug(f"Wrote {count} rows to {file_path}")
    return count


def write_hit_report(indices, file_path: str) -> int:
    """Write target, query, e-value, score for every hit of every index"""
    rows: List[List[str]] = []
    for index in indices:
        rows.extend(index.hit_rows())
    return write_rows(file_path, rows)


def write_recovery_report(indices, file_path: str) -> int:
    """Write source, markers recovered and duplication rate per index"""
    return write_rows(file_path, (index.recovery_row() for index in indices))
