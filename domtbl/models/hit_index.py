#!/usr/bin/env python3
"""
HitIndex - hits from one domain table grouped by marker.

Every reducing operation (score filtering, deduplication, best-hit
reduction) returns a new index and leaves the original untouched, so
statistics computed before a reduction stay available to the caller.
"""
import logging
from collections import OrderedDict
from itertools import groupby
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from domtbl.exceptions import FileOperationError, IndexConsistencyError, MalformedRecordError
from domtbl.models.cutoffs import CutoffTable
from domtbl.models.hit import DEFAULT_COMMENT_CHAR, Hit, parse_hit_line
from domtbl.models.schema import ColumnSchema
from domtbl.utils.reports import format_evalue, format_score

logger = logging.getLogger("domtbl.models.hit_index")


def decode_lines(handle: Iterable[bytes], source: str, encoding: str = "utf-8") -> Iterator[str]:
    """Decode a binary line stream, failing on the first undecodable line

    Raises:
        MalformedRecordError: Naming the source and line that could not be decoded
    """
    for line_number, raw in enumerate(handle, start=1):
        try:
            yield raw.decode(encoding)
        except UnicodeDecodeError as e:
            raise MalformedRecordError(
                f"{source}:{line_number}: not valid {encoding} text at byte {e.start}",
                {"source": source, "line_number": line_number, "encoding": encoding}
            ) from e


class HitIndex:
    """Ordered multi-valued mapping of marker (query) -> hits for one file"""

    def __init__(self, source: str, groups: Optional[Dict[str, List[Hit]]] = None):
        """Initialize index

        Args:
            source: Identifier of the originating file
            groups: Marker -> hits mapping; insertion order is kept

        Raises:
            IndexConsistencyError: If a group is empty or holds a foreign hit
        """
        self.source = source
        self._groups: Dict[str, List[Hit]] = OrderedDict()
        for marker, hits in (groups or {}).items():
            if not hits:
                raise IndexConsistencyError(
                    f"Empty hit list for marker {marker} in {source}",
                    {"marker": marker, "source": source}
                )
            for hit in hits:
                if hit.query != marker:
                    raise IndexConsistencyError(
                        f"Hit for {hit.query} stored under marker {marker} in {source}",
                        {"marker": marker, "query": hit.query, "source": source}
                    )
            self._groups[marker] = list(hits)
        self.n_hits = sum(len(hits) for hits in self._groups.values())

    @classmethod
    def from_hits(cls, source: str, hits: Iterable[Hit]) -> 'HitIndex':
        """Group hits by marker, preserving their order"""
        groups: Dict[str, List[Hit]] = OrderedDict()
        for hit in hits:
            groups.setdefault(hit.query, []).append(hit)
        return cls(source, groups)

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: str, schema: ColumnSchema,
                   comment_char: str = DEFAULT_COMMENT_CHAR) -> 'HitIndex':
        """Build an index from raw domtbl lines

        Raises:
            MalformedRecordError: On the first unparseable line
        """
        hits = []
        for line_number, line in enumerate(lines, start=1):
            hit = parse_hit_line(line, schema, comment_char,
                                 line_number=line_number, source=source)
            if hit is not None:
                hits.append(hit)
        return cls.from_hits(source, hits)

    @classmethod
    def from_file(cls, path: Union[str, Path], schema: ColumnSchema,
                  comment_char: str = DEFAULT_COMMENT_CHAR) -> 'HitIndex':
        """Parse a domtbl file into an index

        Raises:
            FileOperationError: If the file can't be read
            MalformedRecordError: On undecodable or unparseable lines
        """
        source = str(path)
        logger.info(f"Parsing {source}...")
        try:
            with open(path, 'rb') as f:
                index = cls.from_lines(decode_lines(f, source), source, schema, comment_char)
        except OSError as e:
            raise FileOperationError(f"Error reading domtbl {source}: {str(e)}",
                                     {"file_path": source}) from e
        logger.debug(f"{source}: {index.n_hits} hits for {index.n_markers} markers")
        return index

    # Mapping-style access

    def __len__(self) -> int:
        return len(self._groups)

    def __contains__(self, marker: object) -> bool:
        return marker in self._groups

    def __iter__(self) -> Iterator[Tuple[str, List[Hit]]]:
        for marker, hits in self._groups.items():
            yield marker, list(hits)

    def __repr__(self) -> str:
        return f"HitIndex(source={self.source!r}, markers={self.n_markers}, hits={self.n_hits})"

    @property
    def markers(self) -> List[str]:
        return list(self._groups)

    @property
    def n_markers(self) -> int:
        return len(self._groups)

    def hits_for(self, marker: str) -> Optional[List[Hit]]:
        """Hits for a marker, or None if the marker was not recovered"""
        hits = self._groups.get(marker)
        return list(hits) if hits is not None else None

    def all_hits(self) -> List[Hit]:
        """Every hit, grouped by marker"""
        return [hit for hits in self._groups.values() for hit in hits]

    def _derive(self, transform: Callable[[List[Hit]], List[Hit]]) -> 'HitIndex':
        """New index with each group transformed; emptied groups are dropped"""
        groups: Dict[str, List[Hit]] = OrderedDict()
        for marker, hits in self._groups.items():
            kept = transform(list(hits))
            if kept:
                groups[marker] = kept
        return HitIndex(self.source, groups)

    # Reductions

    def filter_by_score(self, cutoffs: CutoffTable) -> 'HitIndex':
        """Keep hits scoring at or above their marker's cutoff

        Raises:
            UnknownMarkerError: If a marker has no cutoff
        """
        def keep_passing(hits: List[Hit]) -> List[Hit]:
            cutoff = cutoffs[hits[0].query]
            return [hit for hit in hits if hit.score >= cutoff]

        filtered = self._derive(keep_passing)
        logger.debug(f"{self.source}: score filter kept {filtered.n_hits}/{self.n_hits} hits")
        return filtered

    def deduplicated(self) -> 'HitIndex':
        """Sort each group by target and collapse exact duplicates.

        Only runs equal on (target, query, e_value, score) are collapsed; a
        hit with the same target but a different score is kept.
        """
        def dedup(hits: List[Hit]) -> List[Hit]:
            ordered = sorted(hits, key=lambda hit: hit.target)
            return [next(run) for _, run in groupby(ordered, key=lambda hit: hit.dedup_key)]

        return self._derive(dedup)

    def best_hits(self) -> 'HitIndex':
        """Reduce every group to its single highest-scoring hit"""
        def best(hits: List[Hit]) -> List[Hit]:
            return sorted(hits, key=lambda hit: hit.score, reverse=True)[:1]

        return self._derive(best)

    # Statistics

    def duplication_rate(self) -> float:
        """Fraction of markers with more than one hit.

        Returns 0.0 for an index without markers.

        Raises:
            IndexConsistencyError: If an empty group is found
        """
        if not self._groups:
            logger.debug(f"{self.source}: no markers, duplication rate is 0.0")
            return 0.0

        duplicated = 0
        for marker, hits in self._groups.items():
            if not hits:
                raise IndexConsistencyError(
                    f"Zero-length hit list for marker {marker} in {self.source}",
                    {"marker": marker, "source": self.source}
                )
            if len(hits) > 1:
                duplicated += 1
        return duplicated / len(self._groups)

    # Report rows

    def hit_rows(self) -> List[List[str]]:
        """Rows of (target, query, e_value, score) for the hit report"""
        rows = []
        for marker, hits in self._groups.items():
            for hit in hits:
                if hit.query != marker:
                    raise IndexConsistencyError(
                        f"Hit for {hit.query} stored under marker {marker}",
                        {"marker": marker, "source": self.source}
                    )
                rows.append([hit.target, hit.query, format_evalue(hit.e_value), format_score(hit.score)])
        return rows

    def recovery_row(self) -> List[str]:
        """Row of (source, markers recovered, duplication rate)"""
        return [self.source, str(self.n_markers), f"{self.duplication_rate():.2f}"]
