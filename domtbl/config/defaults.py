#!/usr/bin/env python3
"""
Default configuration values for the domtbl pipeline
"""

DEFAULT_CONFIG = {
    'paths': {
        'output_dir': './output',
        'lineages_dir': './busco_downloads/lineages',
    },
    'cutoffs': {
        'preset': None,
        'presets': {},
        'filename': 'scores_cutoff',
    },
    'aggregation': {
        'extension': 'domtbl',
        'comment_char': '#',
        'best_hit_only': False,
        'min_occupancy': 0.75,
        'occupancy_boundary': 'inclusive',
        'reset_alignment_lengths': False,
    },
    'reports': {
        'hit_report': 'hit_report.tsv',
        'recovery_report': 'marker_recovery.tsv',
        'alignment_lengths': 'aln_length.tsv',
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}
