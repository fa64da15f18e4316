#!/usr/bin/env python3
"""
Sequence utilities for the domtbl pipeline.
Random-access protein lookup and unaligned FASTA output.
"""
import os
import logging
from typing import Optional, TextIO

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from domtbl.exceptions import FileOperationError, SequenceNotFoundError

logger = logging.getLogger("domtbl.utils.sequence")


class SequenceStore:
    """Read-only protein lookup by identifier over an indexed FASTA file.

    Opened once per run and shared by every extraction call; use as a
    context manager so the underlying handle is released on all paths.
    """

    def __init__(self, fasta_path: str, file_format: str = "fasta"):
        """Index a FASTA file for random access

        Args:
            fasta_path: Path to the protein FASTA for all taxa
            file_format: Biopython format name

        Raises:
            FileOperationError: If the file is missing or cannot be indexed
        """
        self.fasta_path = fasta_path
        if not os.path.isfile(fasta_path):
            raise FileOperationError(f"Protein FASTA not found: {fasta_path}",
                                     {"file_path": fasta_path})
        try:
            self._index = SeqIO.index(fasta_path, file_format)
        except (OSError, ValueError) as e:
            raise FileOperationError(f"Error indexing {fasta_path}: {str(e)}",
                                     {"file_path": fasta_path}) from e
        logger.info(f"Indexed {len(self._index)} sequences from {fasta_path}")

    def __enter__(self) -> 'SequenceStore':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._index

    def __len__(self) -> int:
        return len(self._index)

    def close(self) -> None:
        if self._index is not None:
            self._index.close()
            self._index = None

    def fetch(self, identifier: str) -> str:
        """Full sequence for an identifier

        Raises:
            SequenceNotFoundError: If the identifier is not in the index
        """
        try:
            record = self._index[identifier]
        except KeyError:
            raise SequenceNotFoundError(identifier, {"fasta": self.fasta_path}) from None
        return str(record.seq)

    def get(self, identifier: str) -> Optional[str]:
        """Sequence for an identifier, or None if absent"""
        try:
            return self.fetch(identifier)
        except SequenceNotFoundError:
            return None


def write_fasta_record(handle: TextIO, identifier: str, sequence: str) -> None:
    """Append a two-line FASTA record (header, unwrapped sequence)"""
    record = SeqRecord(Seq(sequence), id=identifier, description="")
    SeqIO.write(record, handle, "fasta-2line")
