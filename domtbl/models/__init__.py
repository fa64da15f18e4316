"""
Core data models: column schema, hits, hit indices and score cutoffs.
"""
from .schema import ColumnSchema, DOMTBL_FIELDS
from .hit import Hit, parse_hit_line
from .cutoffs import CutoffTable, CutoffRegistry
from .hit_index import HitIndex

__all__ = [
    'ColumnSchema', 'DOMTBL_FIELDS',
    'Hit', 'parse_hit_line',
    'CutoffTable', 'CutoffRegistry',
    'HitIndex',
]
