"""
Aggregation pipeline for per-taxon domain tables.
"""
from .models import AggregationOptions, AggregationResult, OccupancyBoundary
from .aggregation import (
    AggregationPipeline, AlignmentLengthLog,
    has_sufficient_occupancy, marker_occupancy, observed_markers,
    summarize_alignment_lengths
)

__all__ = [
    'AggregationOptions', 'AggregationResult', 'OccupancyBoundary',
    'AggregationPipeline', 'AlignmentLengthLog',
    'has_sufficient_occupancy', 'marker_occupancy', 'observed_markers',
    'summarize_alignment_lengths',
]
