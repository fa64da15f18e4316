#!/usr/bin/env python3
"""
Shared fixtures for domtbl tests
"""

import pytest
from pathlib import Path

from domtbl.models.schema import ColumnSchema
from domtbl.tests.helpers import domtbl_line, write_domtbl, write_fasta


@pytest.fixture
def schema() -> ColumnSchema:
    return ColumnSchema.domtbl()


@pytest.fixture
def make_line():
    return domtbl_line


@pytest.fixture
def cutoff_file(tmp_path) -> Path:
    path = tmp_path / "cutoffs" / "scores_cutoff"
    path.parent.mkdir(parents=True)
    path.write_text("M1\t15.0\nM2\t4.0\nM3\t50.0\n\n")
    return path


@pytest.fixture
def proteins(tmp_path) -> Path:
    """Protein FASTA covering taxa A, B and C (target ``taxC_p9`` is absent)"""
    return write_fasta(tmp_path / "proteins.faa", {
        "taxA_p1": "MKVLAAGIVGLLLAAQ" * 5,
        "taxA_p2": "MSTNPKPQRKTKRNTNRRPQDVKFPGG",
        "taxB_p1": "MGSSHHHHHHSSGLVPRGSH",
        "taxB_p2": "MAAAKKKLLLEEE",
        "taxC_p1": "MQIFVKTLTGKTITLEVEPSDTIENVKAKIQDKEGIPPDQQRLIFAGKQLEDGRTLSDYNIQKESTLHLVLRLRGG",
    })


@pytest.fixture
def domtbl_dir(tmp_path) -> Path:
    """Three taxa; M1 found in all, M2 in two, M3 in one"""
    directory = tmp_path / "domtbls"
    write_domtbl(directory / "taxA.domtbl", [
        domtbl_line("taxA_p1", "M1", "1e-30", "120.5", 1, 80),
        domtbl_line("taxA_p1", "M1", "1e-30", "120.5", 90, 150),
        domtbl_line("taxA_p2", "M1", "1e-5", "10.0"),
        domtbl_line("taxA_p2", "M2", "1e-3", "5.0", 10, 19),
    ])
    write_domtbl(directory / "taxB.domtbl", [
        domtbl_line("taxB_p1", "M1", "1e-20", "80.0"),
        domtbl_line("taxB_p2", "M2", "1e-4", "7.5"),
        domtbl_line("taxB_p2", "M3", "1e-2", "60.0"),
    ])
    write_domtbl(directory / "taxC.domtbl", [
        domtbl_line("taxC_p1", "M1", "1e-25", "90.0"),
        domtbl_line("taxC_p9", "M1", "1e-22", "85.0"),
    ])
    # Not a domain table
    (directory / "notes.txt").write_text("ignore me\n")
    return directory
