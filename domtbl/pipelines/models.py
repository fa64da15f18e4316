#!/usr/bin/env python3
"""
Options and result models for the aggregation pipeline.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from domtbl.exceptions import ValidationError


class OccupancyBoundary(Enum):
    """How a marker's occupancy is compared against the threshold"""
    INCLUSIVE = "inclusive"  # occupancy >= threshold passes
    EXCLUSIVE = "exclusive"  # occupancy > threshold passes

    def admits(self, occupancy: float, threshold: float) -> bool:
        if self is OccupancyBoundary.INCLUSIVE:
            return occupancy >= threshold
        return occupancy > threshold


@dataclass
class AggregationOptions:
    """Settings for one aggregation run"""

    best_hit_only: bool = False
    min_occupancy: float = 0.75
    boundary: OccupancyBoundary = OccupancyBoundary.INCLUSIVE

    # Input
    extension: str = "domtbl"
    comment_char: str = "#"

    # Outputs (relative to the output directory)
    reset_alignment_lengths: bool = False
    hit_report: str = "hit_report.tsv"
    recovery_report: str = "marker_recovery.tsv"
    alignment_lengths: str = "aln_length.tsv"

    def validate(self) -> None:
        """Check option values

        Raises:
            ValidationError: If any option is out of range
        """
        if not 0.0 <= self.min_occupancy <= 1.0:
            raise ValidationError(f"min_occupancy must be within [0, 1]: {self.min_occupancy}",
                                  {"min_occupancy": self.min_occupancy})
        if not self.comment_char:
            raise ValidationError("comment_char cannot be empty")
        if not self.extension:
            raise ValidationError("extension cannot be empty")


@dataclass
class AggregationResult:
    """Summary of an aggregation run"""

    files_processed: int = 0
    markers_observed: int = 0
    markers_written: List[str] = field(default_factory=list)
    sequences_written: int = 0
    missing_targets: List[str] = field(default_factory=list)
    output_files: Dict[str, str] = field(default_factory=dict)

    @property
    def missing_count(self) -> int:
        return len(self.missing_targets)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files_processed": self.files_processed,
            "markers_observed": self.markers_observed,
            "markers_written": len(self.markers_written),
            "sequences_written": self.sequences_written,
            "missing_targets": self.missing_count,
            "output_files": dict(self.output_files),
        }
