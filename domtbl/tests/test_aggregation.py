#!/usr/bin/env python3
"""
Tests for the aggregation pipeline

Covers:
- Occupancy threshold policies
- Alignment length bookkeeping
- Full runs over a directory of domain tables
"""

import logging
import os

import pytest

from domtbl.exceptions import (
    FileOperationError, MalformedRecordError, PipelineError, UnknownMarkerError, ValidationError
)
from domtbl.models.cutoffs import CutoffTable
from domtbl.models.hit import Hit
from domtbl.models.hit_index import HitIndex
from domtbl.pipelines import (
    AggregationOptions, AggregationPipeline, AlignmentLengthLog, OccupancyBoundary,
    has_sufficient_occupancy, marker_occupancy, observed_markers, summarize_alignment_lengths,
)
from domtbl.tests.helpers import domtbl_line, write_domtbl


def index_with(source, markers):
    hits = [Hit(target=f"{source}_p{i}", query=marker, score=10.0, e_value=1e-5)
            for i, marker in enumerate(markers)]
    return HitIndex.from_hits(source, hits)


def read_rows(path):
    with open(path) as f:
        return [line.rstrip("\n").split("\t") for line in f]


@pytest.fixture
def four_taxa():
    """M1 in 3 of 4 taxa, M2 in 2 of 4, M3 in all"""
    return [
        index_with("a", ["M1", "M2", "M3"]),
        index_with("b", ["M1", "M3"]),
        index_with("c", ["M1", "M2", "M3"]),
        index_with("d", ["M3"]),
    ]


class TestOccupancy:
    """Test marker occupancy thresholds"""

    def test_marker_occupancy(self, four_taxa):
        assert marker_occupancy("M1", four_taxa) == 0.75
        assert marker_occupancy("M2", four_taxa) == 0.5
        assert marker_occupancy("M9", four_taxa) == 0.0

    def test_inclusive_boundary(self, four_taxa):
        assert has_sufficient_occupancy("M1", four_taxa, 0.75)
        assert not has_sufficient_occupancy("M2", four_taxa, 0.75)
        assert has_sufficient_occupancy("M3", four_taxa, 0.75)

    def test_exclusive_boundary(self, four_taxa):
        exclusive = OccupancyBoundary.EXCLUSIVE
        assert not has_sufficient_occupancy("M1", four_taxa, 0.75, exclusive)
        assert has_sufficient_occupancy("M1", four_taxa, 0.74, exclusive)
        assert has_sufficient_occupancy("M3", four_taxa, 0.75, exclusive)

    def test_full_threshold(self, four_taxa):
        assert has_sufficient_occupancy("M3", four_taxa, 1.0)
        assert not has_sufficient_occupancy("M1", four_taxa, 1.0)
        assert not has_sufficient_occupancy("M3", four_taxa, 1.0, OccupancyBoundary.EXCLUSIVE)

    def test_zero_threshold_admits_absent_marker_only_inclusively(self, four_taxa):
        assert has_sufficient_occupancy("M9", four_taxa, 0.0)
        assert not has_sufficient_occupancy("M9", four_taxa, 0.0, OccupancyBoundary.EXCLUSIVE)

    def test_empty_dataset(self):
        assert not has_sufficient_occupancy("M1", [], 0.0)
        assert marker_occupancy("M1", []) == 0.0

    def test_observed_markers_first_seen_order(self, four_taxa):
        dataset = [index_with("x", ["M3"])] + four_taxa
        assert observed_markers(dataset) == ["M3", "M1", "M2"]


class TestAlignmentLengths:
    """Test per (marker, target) alignment length sums"""

    def test_lengths_summed_per_target(self, schema):
        index = HitIndex.from_lines([
            domtbl_line("p1", "M1", ali_from=1, ali_to=80),
            domtbl_line("p1", "M1", ali_from=90, ali_to=150),
            domtbl_line("p2", "M1", ali_from=5, ali_to=5),
            domtbl_line("p1", "M2", ali_from=10, ali_to=19),
        ], "taxA", schema)

        totals = summarize_alignment_lengths(index, schema)

        assert totals == {("M1", "p1"): 141, ("M1", "p2"): 1, ("M2", "p1"): 10}
        assert list(totals) == [("M1", "p1"), ("M1", "p2"), ("M2", "p1")]

    def test_log_appends_across_records(self, tmp_path, schema):
        path = str(tmp_path / "aln_length.tsv")
        index = HitIndex.from_lines([domtbl_line("p1", "M1", ali_from=1, ali_to=10)], "t", schema)

        log = AlignmentLengthLog(path, schema)
        log.record(index)
        AlignmentLengthLog(path, schema).record(index)

        assert read_rows(path) == [["M1", "p1", "10"], ["M1", "p1", "10"]]

    def test_log_reset_truncates(self, tmp_path, schema):
        path = tmp_path / "aln_length.tsv"
        path.write_text("stale\trow\t1\n")
        index = HitIndex.from_lines([domtbl_line("p1", "M1", ali_from=1, ali_to=10)], "t", schema)

        AlignmentLengthLog(str(path), schema, reset=True).record(index)

        assert read_rows(path) == [["M1", "p1", "10"]]


class TestAggregationOptions:
    """Test option validation"""

    @pytest.mark.parametrize("value", [-0.1, 1.5])
    def test_occupancy_out_of_range(self, value):
        with pytest.raises(ValidationError):
            AggregationOptions(min_occupancy=value).validate()

    def test_pipeline_validates_options(self):
        with pytest.raises(ValidationError):
            AggregationPipeline(AggregationOptions(comment_char=""))


class TestAggregationPipeline:
    """Test full runs over the fixture taxa"""

    @pytest.fixture
    def cutoffs(self, cutoff_file):
        return CutoffTable.from_file(cutoff_file)

    def test_run_writes_reports_and_fasta(self, tmp_path, domtbl_dir, proteins, cutoffs):
        outdir = tmp_path / "out"
        pipeline = AggregationPipeline(AggregationOptions(), cutoffs=cutoffs)

        result = pipeline.run(str(domtbl_dir), str(proteins), str(outdir))

        assert result.files_processed == 3
        assert result.markers_observed == 3
        # M2 and M3 fall below 0.75 occupancy
        assert result.markers_written == ["M1"]
        assert result.sequences_written == 3
        assert result.missing_targets == ["taxC_p9"]
        assert sorted(os.listdir(outdir)) == [
            "M1.fasta", "aln_length.tsv", "hit_report.tsv", "marker_recovery.tsv",
        ]

        fasta = (outdir / "M1.fasta").read_text().splitlines()
        assert fasta[0::2] == [">taxA_p1", ">taxB_p1", ">taxC_p1"]
        assert fasta[1] == "MKVLAAGIVGLLLAAQ" * 5

    def test_recovery_report(self, tmp_path, domtbl_dir, proteins, cutoffs):
        outdir = tmp_path / "out"
        AggregationPipeline(cutoffs=cutoffs).run(str(domtbl_dir), str(proteins), str(outdir))

        rows = read_rows(outdir / "marker_recovery.tsv")
        assert [os.path.basename(row[0]) for row in rows] == [
            "taxA.domtbl", "taxB.domtbl", "taxC.domtbl",
        ]
        assert [row[1:] for row in rows] == [["2", "0.00"], ["3", "0.00"], ["1", "1.00"]]

    def test_hit_report_after_filter_and_dedup(self, tmp_path, domtbl_dir, proteins, cutoffs):
        outdir = tmp_path / "out"
        AggregationPipeline(cutoffs=cutoffs).run(str(domtbl_dir), str(proteins), str(outdir))

        rows = read_rows(outdir / "hit_report.tsv")
        assert rows[:2] == [["taxA_p1", "M1", "1e-30", "120.5"], ["taxA_p2", "M2", "1e-3", "5"]]
        # taxA_p2/M1 scores below its cutoff
        assert ["taxA_p2", "M1", "1e-5", "10"] not in rows
        assert len(rows) == 7

    def test_alignment_lengths_recorded_before_dedup(self, tmp_path, domtbl_dir, proteins, cutoffs):
        outdir = tmp_path / "out"
        AggregationPipeline(cutoffs=cutoffs).run(str(domtbl_dir), str(proteins), str(outdir))

        rows = read_rows(outdir / "aln_length.tsv")
        assert rows[:2] == [["M1", "taxA_p1", "141"], ["M2", "taxA_p2", "10"]]
        assert len(rows) == 7

    def test_alignment_lengths_accumulate_across_runs(self, tmp_path, domtbl_dir, proteins, cutoffs):
        outdir = str(tmp_path / "out")
        AggregationPipeline(cutoffs=cutoffs).run(str(domtbl_dir), str(proteins), outdir)
        AggregationPipeline(cutoffs=cutoffs).run(str(domtbl_dir), str(proteins), outdir)
        assert len(read_rows(os.path.join(outdir, "aln_length.tsv"))) == 14

        options = AggregationOptions(reset_alignment_lengths=True)
        AggregationPipeline(options, cutoffs=cutoffs).run(str(domtbl_dir), str(proteins), outdir)
        assert len(read_rows(os.path.join(outdir, "aln_length.tsv"))) == 7

    def test_best_hit_mode(self, tmp_path, domtbl_dir, proteins, cutoffs):
        outdir = tmp_path / "out"
        options = AggregationOptions(best_hit_only=True)

        result = AggregationPipeline(options, cutoffs=cutoffs).run(
            str(domtbl_dir), str(proteins), str(outdir))

        assert result.missing_targets == []
        assert (outdir / "M1.fasta").read_text().splitlines()[0::2] == [
            ">taxA_p1", ">taxB_p1", ">taxC_p1",
        ]
        # Recovery rates still describe hits before best-hit reduction
        recovery = read_rows(outdir / "marker_recovery.tsv")
        assert recovery[2][2] == "1.00"
        assert len(read_rows(outdir / "hit_report.tsv")) == 6

    def test_without_cutoffs_keeps_all_hits(self, tmp_path, domtbl_dir, proteins):
        outdir = tmp_path / "out"
        options = AggregationOptions(min_occupancy=0.5)

        result = AggregationPipeline(options).run(str(domtbl_dir), str(proteins), str(outdir))

        assert result.markers_written == ["M1", "M2"]
        assert len(read_rows(outdir / "hit_report.tsv")) == 8
        m1 = (outdir / "M1.fasta").read_text().splitlines()[0::2]
        assert m1 == [">taxA_p1", ">taxA_p2", ">taxB_p1", ">taxC_p1"]

    def test_exclusive_boundary(self, tmp_path, domtbl_dir, proteins, cutoffs):
        options = AggregationOptions(min_occupancy=1.0, boundary=OccupancyBoundary.EXCLUSIVE)
        result = AggregationPipeline(options, cutoffs=cutoffs).run(
            str(domtbl_dir), str(proteins), str(tmp_path / "out"))

        assert result.markers_written == []
        assert result.sequences_written == 0

    def test_unknown_marker_aborts(self, tmp_path, domtbl_dir, proteins):
        cutoffs = CutoffTable({"M1": 1.0}, name="partial")
        with pytest.raises(UnknownMarkerError):
            AggregationPipeline(cutoffs=cutoffs).run(
                str(domtbl_dir), str(proteins), str(tmp_path / "out"))

    def test_malformed_file_aborts(self, tmp_path, domtbl_dir, proteins, cutoffs):
        (domtbl_dir / "taxD.domtbl").write_text("taxD_p1 - 300 M1 - 250 not_a_number 10.0\n")
        with pytest.raises(MalformedRecordError):
            AggregationPipeline(cutoffs=cutoffs).run(
                str(domtbl_dir), str(proteins), str(tmp_path / "out"))

    def test_bad_alignment_coordinates_logged_with_file(self, tmp_path, schema, caplog):
        path = write_domtbl(tmp_path / "taxA.domtbl", [domtbl_line("taxA_p1", "M1", ali_from="x")])
        alignment_log = AlignmentLengthLog(str(tmp_path / "aln_length.tsv"), schema)

        with caplog.at_level(logging.ERROR, logger="domtbl.pipelines.aggregation"):
            with pytest.raises(MalformedRecordError) as exc_info:
                AggregationPipeline().parse_file(str(path), alignment_log)

        assert exc_info.value.details["source"] == str(path)
        assert caplog.records[-1].context["file"] == str(path)

    def test_undecodable_file_aborts(self, tmp_path, domtbl_dir, proteins, cutoffs, caplog):
        (domtbl_dir / "taxD.domtbl").write_bytes(b"\xff\xfe bad\n")

        with caplog.at_level(logging.ERROR, logger="domtbl.pipelines.aggregation"):
            with pytest.raises(MalformedRecordError) as exc_info:
                AggregationPipeline(cutoffs=cutoffs).run(
                    str(domtbl_dir), str(proteins), str(tmp_path / "out"))

        assert exc_info.value.details["line_number"] == 1
        assert caplog.records[-1].context["file"].endswith("taxD.domtbl")

    def test_no_domain_tables(self, tmp_path, proteins):
        empty = tmp_path / "empty"
        empty.mkdir()
        with pytest.raises(PipelineError):
            AggregationPipeline().run(str(empty), str(proteins), str(tmp_path / "out"))

    def test_custom_extension(self, tmp_path, proteins):
        directory = tmp_path / "tbl"
        write_domtbl(directory / "taxA.tbl", [domtbl_line("taxA_p1", "M1")])
        write_domtbl(directory / "taxB.domtbl", [domtbl_line("taxB_p1", "M1")])

        result = AggregationPipeline(AggregationOptions(extension="tbl")).run(
            str(directory), str(proteins), str(tmp_path / "out"))

        assert result.files_processed == 1

    def test_missing_proteins(self, tmp_path, domtbl_dir):
        with pytest.raises(FileOperationError):
            AggregationPipeline().run(str(domtbl_dir), str(tmp_path / "missing.faa"),
                                      str(tmp_path / "out"))

    def test_result_summary(self, tmp_path, domtbl_dir, proteins, cutoffs):
        result = AggregationPipeline(cutoffs=cutoffs).run(
            str(domtbl_dir), str(proteins), str(tmp_path / "out"))

        summary = result.to_dict()
        assert summary["markers_written"] == 1
        assert summary["missing_targets"] == 1
        assert set(summary["output_files"]) == {"hit_report", "recovery_report", "alignment_lengths"}
