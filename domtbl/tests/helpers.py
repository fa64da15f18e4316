#!/usr/bin/env python3
"""
Builders for domain table and FASTA test inputs
"""

from pathlib import Path
from typing import List
DOMTBL_HEADER = """#                                                                            --- full sequence --- -------------- this domain -------------   hmm coord   ali coord   env coord
# target name        accession   tlen query name           accession   qlen   E-value  score  bias   #  of  c-Evalue  i-Evalue  score  bias  from    to  from    to  from    to  acc description of target
#------------------- ---------- ----- -------------------- ---------- ----- --------- ------ ----- --- --- --------- --------- ------ ----- ----- ----- ----- ----- ----- ----- ---- ---------------------
"""


def domtbl_line(target: str, query: str, evalue: str = "1e-10", score: str = "100.0",
                ali_from: int = 1, ali_to: int = 100, description: str = "-") -> str:
    """One domain table record with the 23 standard columns"""
    return " ".join([
        target, "-", "300", query, "-", "250",
        evalue, score, "0.1",
        "1", "1", "1e-20", "1e-20", score, "0.1",
        "1", "200", str(ali_from), str(ali_to), str(ali_from), str(ali_to),
        "0.95", description,
    ])


def write_domtbl(path: Path, lines: List[str], header: bool = True) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        if header:
            f.write(DOMTBL_HEADER)
        for line in lines:
            f.write(line + "\n")
        f.write("#\n# Program:         hmmsearch\n# [ok]\n")
    return path


def write_fasta(path: Path, records: dict) -> Path:
    with open(path, 'w') as f:
        for identifier, sequence in records.items():
            f.write(f">{identifier} predicted protein\n")
            for i in range(0, len(sequence), 60):
                f.write(sequence[i:i + 60] + "\n")
    return path
