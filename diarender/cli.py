"""
Command Line Interface for diagram exports.
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from .exceptions import RenderError
from .pregen import Pregenerator
from .render_config import RenderConfig, parse_books, parse_densities
from .renderer import DiagramRenderer


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('sh').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('diarender')


def get_config(args: argparse.Namespace) -> RenderConfig:
    """Get configuration from environment and CLI overrides."""
    config = RenderConfig.from_env()

    if getattr(args, 'dia_path', None):
        config.dia_path = args.dia_path
    if getattr(args, 'cache_dir', None):
        config.cache_dir = Path(args.cache_dir)
    if getattr(args, 'book', None):
        config.books = parse_books(';'.join(args.book))
    if getattr(args, 'timeout', None):
        config.timeout = args.timeout
    if getattr(args, 'densities', None):
        config.densities = parse_densities(args.densities)
    if getattr(args, 'workers', None):
        config.max_workers = args.workers

    return config


def load_config(args: argparse.Namespace, logger: logging.Logger) -> Optional[RenderConfig]:
    """Build and validate configuration, logging any errors."""
    try:
        config = get_config(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return None

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(error)
        return None
    return config


def add_render_arguments(parser: argparse.ArgumentParser) -> None:
    """Add export configuration arguments to a parser."""
    group = parser.add_argument_group('Export')
    group.add_argument('--dia-path', metavar='PATH', help='Override DIA_PATH')
    group.add_argument('--cache-dir', metavar='DIR', help='Override DIA_CACHE_DIR')
    group.add_argument('--book', action='append', metavar='PREFIX=DIR',
                       help='Book root, may be repeated (overrides DIA_BOOKS)')
    group.add_argument('--timeout', type=float, help='Seconds before dia is killed')
    group.add_argument('--densities', help='Comma separated pixel densities (e.g., 1,2,3,4)')
    group.add_argument('--workers', type=int, help='Threads used for density variants')


def cmd_render(args: argparse.Namespace) -> int:
    """Export one diagram at every density and print the results."""
    logger = setup_logging(args.verbose)
    config = load_config(args, logger)
    if config is None:
        return 1

    with DiagramRenderer.from_config(config, logger=logger) as renderer:
        try:
            exports = renderer.render_all(args.book_prefix, args.path, args.width, args.height)
        except (RenderError, ValueError) as e:
            logger.error(f"Export failed: {e}")
            return 1

        if exports is None:
            logger.error(f"Diagram not found: {args.book_prefix}{args.path}")
            return 1

        for density, export in zip(config.densities, exports):
            print(f"x{density}\t{export.width}x{export.height}\t{export.file_path}")
    return 0


def cmd_pregen(args: argparse.Namespace) -> int:
    """Export every diagram of the configured books."""
    logger = setup_logging(args.verbose)
    config = load_config(args, logger)
    if config is None:
        return 1

    with DiagramRenderer.from_config(config, logger=logger) as renderer:
        pregenerator = Pregenerator(
            renderer,
            width=args.width,
            height=args.height,
            dry_run=args.dry_run,
            logger=logger
        )
        try:
            stats = pregenerator.run(books=args.only, limit=args.limit)
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            return 130

    if not args.quiet:
        print()
        print(f"Exported: {stats.processed}")
        print(f"Variants: {stats.variants}")
        print(f"Missing: {stats.missing}")
        print(f"Errors: {stats.errors}")
        print(f"Time: {stats.elapsed_seconds:.1f}s")
        print(f"Rate: {stats.rate_per_minute:.1f}/min")

    return 0 if stats.errors == 0 else 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='diarender',
        description='Export Dia diagrams to PNG through the export cache',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m diarender render /docs /net/layout.dia --width 400 --book /docs=/srv/docs
  python -m diarender pregen --book /docs=/srv/docs --limit 3

Configuration:
  DIA_PATH, DIA_CACHE_DIR, DIA_BOOKS, DIA_TIMEOUT, DIA_DENSITIES,
  DIA_MAX_WORKERS and DIA_WAIT_TIMEOUT are read from the environment;
  options override them.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    render_parser = subparsers.add_parser('render', help='Export one diagram at every density')
    render_parser.add_argument('book_prefix', metavar='BOOK', help='Book prefix (e.g., /docs)')
    render_parser.add_argument('path', help='Diagram path inside the book')
    render_parser.add_argument('-W', '--width', type=int, default=0, help='Base width (0: unspecified)')
    render_parser.add_argument('-H', '--height', type=int, default=0, help='Base height (0: unspecified)')
    render_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_render_arguments(render_parser)

    pregen_parser = subparsers.add_parser('pregen', help='Export every diagram of the configured books')
    pregen_parser.add_argument('-W', '--width', type=int, default=0, help='Base width (0: unspecified)')
    pregen_parser.add_argument('-H', '--height', type=int, default=0, help='Base height (0: unspecified)')
    pregen_parser.add_argument('--only', action='append', metavar='BOOK', help='Book prefix(es) to process')
    pregen_parser.add_argument('--limit', type=int, metavar='N', help='Limit to N diagrams (for testing)')
    pregen_parser.add_argument('-n', '--dry-run', action='store_true', help='Show what would be done')
    pregen_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress the summary')
    pregen_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_render_arguments(pregen_parser)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'render':
        return cmd_render(parsed_args)
    elif parsed_args.command == 'pregen':
        return cmd_pregen(parsed_args)

    return 1
