#!/usr/bin/env python3
"""
Column layout of HMMER domain tables (hmmsearch/hmmscan --domtblout).
"""
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Tuple


# Field order as written by HMMER3 --domtblout
DOMTBL_FIELDS: Tuple[str, ...] = (
    "target_name",
    "target_accession",
    "tlen",
    "query_name",
    "query_accession",
    "qlen",
    "fs_evalue",
    "fs_score",
    "fs_bias",
    "dom_id",
    "dom_total",
    "dom_cevalue",
    "dom_ievalue",
    "dom_score",
    "dom_bias",
    "hmm_from",
    "hmm_to",
    "ali_from",
    "ali_to",
    "env_from",
    "env_to",
    "acc",
    "target_description",
)


class ColumnSchema(Mapping[str, int]):
    """Immutable mapping of field name to column index.

    Built once by the caller and passed to every parsing call.
    """

    def __init__(self, columns: Mapping[str, int]):
        if not columns:
            raise ValueError("Column schema cannot be empty")
        for name, index in columns.items():
            if not isinstance(index, int) or index < 0:
                raise ValueError(f"Invalid column index for {name}: {index!r}")
        self._columns = MappingProxyType(dict(columns))

    @classmethod
    def domtbl(cls) -> 'ColumnSchema':
        """Schema for standard HMMER3 domain tables"""
        return cls({name: i for i, name in enumerate(DOMTBL_FIELDS)})

    @classmethod
    def from_names(cls, names: List[str]) -> 'ColumnSchema':
        """Schema from an ordered list of column names"""
        if len(set(names)) != len(names):
            raise ValueError("Duplicate column names in schema")
        return cls({name: i for i, name in enumerate(names)})

    def __getitem__(self, name: str) -> int:
        return self._columns[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        return f"ColumnSchema({len(self)} fields)"

    def index(self, name: str) -> int:
        """Column index for a named field"""
        return self._columns[name]

    @property
    def min_fields(self) -> int:
        """Number of tokens a record needs to cover every column"""
        return max(self._columns.values()) + 1

    def as_dict(self) -> Dict[str, int]:
        return dict(self._columns)
