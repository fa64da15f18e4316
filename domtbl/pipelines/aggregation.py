#!/usr/bin/env python3
"""
Marker Aggregation Pipeline

Collects per-taxon HMMER domain tables into per-marker unaligned FASTA
files. For every domain table:

1. Parse lines into a HitIndex keyed by marker
2. Drop hits below their marker's score cutoff (when cutoffs are given)
3. Append summed alignment lengths per (marker, target)
4. Collapse duplicate hits

Across the dataset it then writes the recovery and hit reports and, for
each marker present in enough taxa, the sequences of its hits.
"""
import os
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from domtbl.error_handlers import log_exception
from domtbl.exceptions import DomtblError, PipelineError, SequenceNotFoundError
from domtbl.models.cutoffs import CutoffTable
from domtbl.models.hit_index import HitIndex
from domtbl.models.schema import ColumnSchema
from domtbl.utils.file import ensure_dir, find_domtbl_files, safe_open, truncate_file
from domtbl.utils.reports import write_hit_report, write_recovery_report, write_rows
from domtbl.utils.sequence import SequenceStore, write_fasta_record

from .models import AggregationOptions, AggregationResult, OccupancyBoundary

logger = logging.getLogger("domtbl.pipelines.aggregation")


def marker_occupancy(marker: str, dataset: Sequence[HitIndex]) -> float:
    """Fraction of indices in the dataset holding at least one hit for marker"""
    if not dataset:
        return 0.0
    present = sum(1 for index in dataset if index.hits_for(marker))
    return present / len(dataset)


def has_sufficient_occupancy(marker: str, dataset: Sequence[HitIndex], min_fraction: float,
                             boundary: OccupancyBoundary = OccupancyBoundary.INCLUSIVE) -> bool:
    """Whether a marker is recovered in enough taxa

    Args:
        marker: Marker identifier
        dataset: One HitIndex per taxon
        min_fraction: Occupancy threshold in [0, 1]
        boundary: Whether occupancy equal to the threshold passes

    Returns:
        True if the marker's occupancy clears the threshold; False for an
        empty dataset
    """
    if not dataset:
        return False
    occupancy = marker_occupancy(marker, dataset)
    logger.debug(f"{marker}: occupancy {occupancy:.3f}")
    return boundary.admits(occupancy, min_fraction)


def observed_markers(dataset: Iterable[HitIndex]) -> List[str]:
    """Markers with hits anywhere in the dataset, in first-seen order"""
    seen: Dict[str, None] = OrderedDict()
    for index in dataset:
        for marker in index.markers:
            seen.setdefault(marker, None)
    return list(seen)


def summarize_alignment_lengths(index: HitIndex,
                                schema: ColumnSchema) -> Dict[Tuple[str, str], int]:
    """Sum alignment lengths over all hits sharing a (marker, target) pair"""
    totals: Dict[Tuple[str, str], int] = OrderedDict()
    for marker, hits in index:
        for hit in hits:
            key = (marker, hit.target)
            totals[key] = totals.get(key, 0) + hit.alignment_length(schema)
    return totals


class AlignmentLengthLog:
    """Append-only marker/target/summed-length accumulation file.

    One instance per run; rows for a file are written in a single append so
    rows from different files never interleave.
    """

    def __init__(self, file_path: str, schema: ColumnSchema, reset: bool = False):
        self.file_path = file_path
        self.schema = schema
        if reset:
            truncate_file(file_path)
            logger.info(f"Truncated alignment length file {file_path}")

    def record(self, index: HitIndex) -> int:
        totals = summarize_alignment_lengths(index, self.schema)
        rows = [[marker, target, str(total)] for (marker, target), total in totals.items()]
        return write_rows(self.file_path, rows, append=True)


class AggregationPipeline:
    """Builds per-marker unaligned FASTA files from a directory of domain tables"""

    def __init__(self, options: Optional[AggregationOptions] = None,
                 cutoffs: Optional[CutoffTable] = None,
                 schema: Optional[ColumnSchema] = None):
        """
        Initialize the pipeline.

        Args:
            options: Run options (defaults if omitted)
            cutoffs: Score cutoffs; None disables score filtering
            schema: Domain table column layout
        """
        self.options = options or AggregationOptions()
        self.options.validate()
        self.cutoffs = cutoffs
        self.schema = schema or ColumnSchema.domtbl()
        self.logger = logger

    def parse_file(self, path: str,
                   alignment_log: Optional[AlignmentLengthLog] = None) -> HitIndex:
        """Parse, filter and deduplicate one domain table

        Raises:
            MalformedRecordError: If any line is malformed
            UnknownMarkerError: If a marker has no cutoff
        """
        try:
            index = HitIndex.from_file(path, self.schema, self.options.comment_char)
            if self.cutoffs is not None:
                index = index.filter_by_score(self.cutoffs)
            if alignment_log is not None:
                alignment_log.record(index)
        except DomtblError as e:
            e.details.setdefault("source", path)
            log_exception(self.logger, e, context={"file": path})
            raise

        return index.deduplicated()

    def load_dataset(self, paths: Sequence[str],
                     alignment_log: Optional[AlignmentLengthLog] = None) -> List[HitIndex]:
        """Parse every domain table, in order"""
        return [self.parse_file(path, alignment_log) for path in paths]

    def reduce_dataset(self, dataset: Sequence[HitIndex]) -> List[HitIndex]:
        """Apply best-hit reduction when enabled"""
        if not self.options.best_hit_only:
            return list(dataset)
        return [index.best_hits() for index in dataset]

    def select_markers(self, dataset: Sequence[HitIndex]) -> List[str]:
        """Markers clearing the occupancy threshold"""
        return [marker for marker in observed_markers(dataset)
                if has_sufficient_occupancy(marker, dataset, self.options.min_occupancy,
                                            self.options.boundary)]

    def extract_sequences(self, dataset: Sequence[HitIndex], store: SequenceStore,
                          output_dir: str, result: Optional[AggregationResult] = None) -> AggregationResult:
        """Write <marker>.fasta for each marker with sufficient occupancy.

        Targets missing from the store are logged and skipped.
        """
        result = result or AggregationResult()
        markers = self.select_markers(dataset)
        self.logger.info(f"{len(markers)} markers pass occupancy threshold "
                         f"{self.options.min_occupancy} ({self.options.boundary.value})")

        for marker in markers:
            fasta_path = os.path.join(output_dir, f"{marker}.fasta")
            written = 0
            with safe_open(fasta_path, 'w') as handle:
                for index in dataset:
                    for hit in index.hits_for(marker) or []:
                        try:
                            sequence = store.fetch(hit.target)
                        except SequenceNotFoundError:
                            self.logger.warning(f"Did not find sequence: {hit.target}")
                            result.missing_targets.append(hit.target)
                            continue
                        write_fasta_record(handle, hit.target, sequence)
                        written += 1

            self.logger.debug(f"Wrote {written} sequences to {fasta_path}")
            result.markers_written.append(marker)
            result.sequences_written += written

        return result

    def run(self, domtbl_dir: str, proteins: str, output_dir: str) -> AggregationResult:
        """Run the full aggregation

        Args:
            domtbl_dir: Directory of domain tables, one per taxon
            proteins: Protein FASTA covering every taxon
            output_dir: Directory for reports and FASTA files

        Returns:
            AggregationResult with run statistics

        Raises:
            PipelineError: If no domain tables are found
        """
        paths = find_domtbl_files(domtbl_dir, self.options.extension)
        if not paths:
            raise PipelineError(f"No *.{self.options.extension} files in {domtbl_dir}",
                                {"directory": domtbl_dir})

        ensure_dir(output_dir)
        result = AggregationResult()
        result.output_files = {
            "hit_report": os.path.join(output_dir, self.options.hit_report),
            "recovery_report": os.path.join(output_dir, self.options.recovery_report),
            "alignment_lengths": os.path.join(output_dir, self.options.alignment_lengths),
        }

        with SequenceStore(proteins) as store:
            alignment_log = AlignmentLengthLog(result.output_files["alignment_lengths"], self.schema,
                                               reset=self.options.reset_alignment_lengths)
            dataset = self.load_dataset(paths, alignment_log)
            result.files_processed = len(dataset)
            result.markers_observed = len(observed_markers(dataset))
            self.logger.info(f"Parsed {len(dataset)} domain tables, "
                             f"{result.markers_observed} markers observed")

            # Recovery rates describe the deduplicated hits, before best-hit reduction
            write_recovery_report(dataset, result.output_files["recovery_report"])

            dataset = self.reduce_dataset(dataset)
            write_hit_report(dataset, result.output_files["hit_report"])

            self.extract_sequences(dataset, store, output_dir, result)

        if result.missing_targets:
            self.logger.warning(f"{result.missing_count} sequences not found in {proteins}")
        self.logger.info(f"Wrote {result.sequences_written} sequences for "
                         f"{len(result.markers_written)} markers to {output_dir}")
        return result
