# domtbl/cli/main.py
import argparse
import json
import sys
import logging
from typing import List, Optional

from ..config import ConfigManager
from ..core.logging_config import LoggingManager
from ..error_handlers import handle_exceptions
from ..models.cutoffs import CutoffRegistry, CutoffTable
from ..models.hit_index import HitIndex
from ..models.schema import ColumnSchema
from ..pipelines.aggregation import AggregationPipeline
from ..pipelines.models import OccupancyBoundary
from ..utils.reports import format_evalue, format_score


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='domtbl',
        description='Aggregate hmmsearch domain tables into per-marker unaligned FASTA files'
    )

    # Global options
    parser.add_argument('--config', type=str, help='Path to configuration file')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase verbosity')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help='Only log warnings and errors')
    parser.add_argument('--log-file', type=str,
                        help='Log to file in addition to stderr')
    parser.add_argument('--log-dir', type=str,
                        help='Directory for log files')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    aggregate_parser = subparsers.add_parser('aggregate', help='Filter hits and extract marker sequences')
    aggregate_parser.add_argument('--domtbls', required=True, metavar='DIR',
                                  help='Directory containing domain tables')
    aggregate_parser.add_argument('--proteins', required=True, metavar='FASTA',
                                  help='Protein FASTA including predictions for all taxa')
    aggregate_parser.add_argument('--outdir', metavar='DIR',
                                  help='Directory for unaligned FASTA files and reports')
    aggregate_parser.add_argument('--best-hit', action='store_true', default=None,
                                  help='Keep only the best-scoring hit per marker and taxon')
    aggregate_parser.add_argument('--cutoffs', metavar='NAME|PATH',
                                  help='Score cutoff preset name or cutoff file')
    aggregate_parser.add_argument('--min-occupancy', type=float,
                                  help='Minimum fraction of taxa a marker must be found in')
    aggregate_parser.add_argument('--exclusive-occupancy', action='store_true',
                                  help='Require occupancy strictly above --min-occupancy')
    aggregate_parser.add_argument('--extension', type=str,
                                  help='Domain table file extension (default: domtbl)')
    aggregate_parser.add_argument('--reset-aln-lengths', action='store_true',
                                  help='Truncate the alignment length file before appending')
    aggregate_parser.add_argument('--json', action='store_true',
                                  help='Print the run summary as JSON')

    cutoffs_parser = subparsers.add_parser('cutoffs', help='List score cutoff presets')
    cutoffs_parser.add_argument('--show', metavar='NAME|PATH',
                                help='Print the cutoffs of one preset')

    summarize_parser = subparsers.add_parser('summarize', help='Summarize hits in one domain table')
    summarize_parser.add_argument('domtbl', help='Domain table file')
    summarize_parser.add_argument('--cutoffs', metavar='NAME|PATH',
                                  help='Score cutoff preset name or cutoff file')
    summarize_parser.add_argument('--best-hit', action='store_true',
                                  help='Reduce each marker to its best hit')

    return parser


def build_registry(config_manager: ConfigManager) -> CutoffRegistry:
    return CutoffRegistry(
        presets=config_manager.get_cutoff_presets(),
        lineages_dir=config_manager.get_path('lineages_dir') or None,
        filename=config_manager.get('cutoffs.filename', 'scores_cutoff')
    )


def run_aggregate(args: argparse.Namespace, config_manager: ConfigManager,
                  logger: logging.Logger) -> int:
    options = config_manager.get_aggregation_options()
    if args.best_hit is not None:
        options.best_hit_only = args.best_hit
    if args.min_occupancy is not None:
        options.min_occupancy = args.min_occupancy
    if args.exclusive_occupancy:
        options.boundary = OccupancyBoundary.EXCLUSIVE
    if args.extension:
        options.extension = args.extension
    if args.reset_aln_lengths:
        options.reset_alignment_lengths = True

    selector = args.cutoffs or config_manager.get('cutoffs.preset')
    cutoffs = build_registry(config_manager).resolve(selector)
    if cutoffs is None:
        logger.info("No score cutoffs selected, keeping all hits")

    outdir = args.outdir or config_manager.get_path('output_dir', './output')
    pipeline = AggregationPipeline(options, cutoffs=cutoffs, schema=ColumnSchema.domtbl())
    result = pipeline.run(args.domtbls, args.proteins, outdir)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"Processed {result.files_processed} domain tables")
        print(f"Markers observed: {result.markers_observed}")
        print(f"Markers written: {len(result.markers_written)}")
        print(f"Sequences written: {result.sequences_written}")
        if result.missing_targets:
            print(f"Sequences not found: {result.missing_count}")
    return 0


def run_cutoffs(args: argparse.Namespace, config_manager: ConfigManager) -> int:
    registry = build_registry(config_manager)

    if args.show:
        table = registry.resolve(args.show)
        for marker, score in table.items():
            print(f"{marker}\t{score}")
        return 0

    names = registry.names()
    if not names:
        print("No cutoff presets found")
        return 0
    for name in names:
        print(f"{name}\t{registry.path_for(name)}")
    return 0


def run_summarize(args: argparse.Namespace, config_manager: ConfigManager) -> int:
    comment_char = config_manager.get('aggregation.comment_char', '#')
    index = HitIndex.from_file(args.domtbl, ColumnSchema.domtbl(), comment_char)

    cutoffs: Optional[CutoffTable] = None
    if args.cutoffs:
        cutoffs = build_registry(config_manager).resolve(args.cutoffs)
        index = index.filter_by_score(cutoffs)
    index = index.deduplicated()
    if args.best_hit:
        index = index.best_hits()

    print("#marker\ttarget\tfs_evalue\tfs_score\tn_hits")
    for marker, hits in index:
        for hit in hits:
            print(f"{marker}\t{hit.target}\t{format_evalue(hit.e_value)}\t"
                  f"{format_score(hit.score)}\t{len(hits)}")
    print(f"# {index.n_markers} markers, {index.n_hits} hits, "
          f"duplication rate {index.duplication_rate():.2f}")
    return 0


@handle_exceptions()
def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    config_manager = ConfigManager(args.config, strict=True)
    logger = LoggingManager.configure(
        log_file=args.log_file,
        log_dir=args.log_dir,
        component="domtbl",
        config=config_manager.config,
        level=LoggingManager.level_for(args.verbose, args.quiet) if (args.verbose or args.quiet) else None
    )
    logger.debug(f"Running command: {args.command}")

    if args.command == 'aggregate':
        return run_aggregate(args, config_manager, logger)
    elif args.command == 'cutoffs':
        return run_cutoffs(args, config_manager)
    elif args.command == 'summarize':
        return run_summarize(args, config_manager)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
