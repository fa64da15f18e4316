#!/usr/bin/env python3
"""
Hit model - a single parsed line of a domain table.
"""
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from domtbl.exceptions import MalformedRecordError
from domtbl.models.schema import ColumnSchema


DEFAULT_COMMENT_CHAR = "#"


def _parse_finite(value: str, field_name: str) -> float:
    try:
        parsed = float(value)
    except ValueError as e:
        raise MalformedRecordError(f"Could not convert {field_name} to float: {value!r}",
                                   {"field": field_name, "value": value}) from e
    if not math.isfinite(parsed):
        raise MalformedRecordError(f"Non-finite {field_name}: {value!r}",
                                   {"field": field_name, "value": value})
    return parsed


@dataclass(frozen=True)
class Hit:
    """One match between a marker profile (query) and a protein (target).

    The full tokenized line is kept in ``raw_fields`` so that columns not
    modelled here can be read back through the schema.
    """
    target: str
    query: str
    score: float
    e_value: float
    raw_fields: Tuple[str, ...] = ()

    @classmethod
    def from_fields(cls, fields: Sequence[str], schema: ColumnSchema) -> 'Hit':
        """Create a hit from a tokenized domtbl line

        Args:
            fields: Whitespace-separated tokens of one record
            schema: Column layout

        Returns:
            Hit instance

        Raises:
            MalformedRecordError: If columns are missing or scores don't parse
        """
        if len(fields) < schema.min_fields:
            raise MalformedRecordError(
                f"Expected at least {schema.min_fields} fields, found {len(fields)}",
                {"n_fields": len(fields), "min_fields": schema.min_fields}
            )

        return cls(
            target=fields[schema["target_name"]],
            query=fields[schema["query_name"]],
            score=_parse_finite(fields[schema["fs_score"]], "fs_score"),
            e_value=_parse_finite(fields[schema["fs_evalue"]], "fs_evalue"),
            raw_fields=tuple(fields),
        )

    @property
    def dedup_key(self) -> Tuple[str, str, float, float]:
        """Fields that must all match for two hits to be duplicates"""
        return (self.target, self.query, self.e_value, self.score)

    def field(self, name: str, schema: ColumnSchema) -> str:
        """Raw value of any schema column"""
        return self.raw_fields[schema[name]]

    def alignment_length(self, schema: ColumnSchema) -> int:
        """Length of the aligned target region (ali_to - ali_from + 1)"""
        try:
            ali_from = int(self.field("ali_from", schema))
            ali_to = int(self.field("ali_to", schema))
        except (ValueError, IndexError) as e:
            raise MalformedRecordError(
                f"Invalid alignment coordinates for {self.target}/{self.query}: {e}",
                {"target": self.target, "query": self.query}
            ) from e
        return ali_to - ali_from + 1

    def __str__(self) -> str:
        return f"{self.target}-{self.e_value:e}"


def is_comment(line: str, comment_char: str = DEFAULT_COMMENT_CHAR) -> bool:
    """Whether a line is a comment (first non-whitespace char is the marker)"""
    return line.lstrip().startswith(comment_char)


def tokenize(line: str) -> List[str]:
    return line.split()


def parse_hit_line(line: str, schema: ColumnSchema,
                   comment_char: str = DEFAULT_COMMENT_CHAR,
                   line_number: Optional[int] = None,
                   source: Optional[str] = None) -> Optional[Hit]:
    """Parse one line of a domain table

    Args:
        line: Raw text line
        schema: Column layout
        comment_char: Comment marker
        line_number: Line number for error reporting
        source: File identifier for error reporting

    Returns:
        Hit, or None for blank and comment lines

    Raises:
        MalformedRecordError: If the line cannot be parsed
    """
    if not line.strip() or is_comment(line, comment_char):
        return None

    try:
        return Hit.from_fields(tokenize(line), schema)
    except MalformedRecordError as e:
        location = source or "<input>"
        if line_number is not None:
            location = f"{location}:{line_number}"
        raise MalformedRecordError(
            f"{location}: {e.message}",
            {**e.details, "source": source, "line_number": line_number}
        ) from e
