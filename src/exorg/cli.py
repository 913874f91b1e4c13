"""Command-line interface for exorg.

Subcommands map onto :class:`~exorg.exporter.Exporter`: ``tangle`` and
``export`` write output files, ``weave`` typesets a PDF, and ``blocks``
inspects a parsed document. Library errors become an ``Error: ...`` line
on stderr and exit status 1.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from exorg import __version__
from exorg.config import Config
from exorg.errors import ExorgError
from exorg.exporter import Exporter
from exorg.router import COPY_TARGET


def setup_logging(verbose: bool) -> None:
    """Send library log records to stderr; DEBUG with -v, INFO otherwise."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def get_config(config_path: Optional[str], directory: Optional[str]) -> Config:
    """Load the Config selected by CLI options."""
    if config_path:
        return Config.from_file(config_path)
    return Config.from_dir(directory or os.getcwd())


def get_exporter(args: argparse.Namespace) -> Exporter:
    """Parse the document named on the command line."""
    config = get_config(args.config, args.directory)
    path = args.file
    if args.directory and not os.path.isabs(path):
        path = os.path.join(args.directory, path)
    return Exporter.from_file(path, config=config, base_dir=args.directory)


def cmd_tangle(args: argparse.Namespace) -> int:
    """Execute the tangle command."""
    try:
        exporter = get_exporter(args)

        if args.dry_run:
            files = exporter.plan(args.format, args.block, args.output)
            print(f"Would write {len(files)} files:")
            for f in files:
                print(f"  {f.path} ({len(f.lines)} lines)")
            return 0

        written = exporter.tangle(args.format, args.block, args.output)
        print(f"Tangled {len(written)} files.")
        return 0

    except (ExorgError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_weave(args: argparse.Namespace) -> int:
    """Execute the weave command."""
    try:
        exporter = get_exporter(args)
        pdf_path = exporter.weave(minted=args.minted)
        print(f"Wove {pdf_path}.")
        return 0

    except (ExorgError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_export(args: argparse.Namespace) -> int:
    """Execute the export command (weave for pdf formats, tangle otherwise)."""
    try:
        exporter = get_exporter(args)
        written = exporter.export(args.format, args.block, args.output)
        print(f"Exported {len(written)} files.")
        return 0

    except (ExorgError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_blocks(args: argparse.Namespace) -> int:
    """Execute the blocks command."""
    try:
        exporter = get_exporter(args)
        document = exporter.document

        if args.name is not None:
            blocks = document.get_by_name(args.name)
            if not blocks:
                print(f"No code block named {args.name!r}.")
            for block in blocks:
                print(block.source)
            return 0

        print(f"Code blocks: {len(document)} ({len(document.names())} names)")
        for block in document.blocks:
            line = f"  {block.name or '<unnamed>'} [{block.language or '-'}]"
            if block.dependencies:
                line += " deps: " + " ".join(block.dependencies)
            if block.destination:
                line += f" -> {block.destination}"
            print(line)

        destinations = document.destinations()
        if destinations:
            print(f"\nDestinations: {len(destinations)}")
            for destination in destinations:
                print(f"  {destination}")

        if document.languages:
            print(f"\nLanguage mappings: {len(document.languages)}")
            for language, suffix in document.languages:
                print(f"  {language}: .{suffix}")
        return 0

    except (ExorgError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-b", "--block",
        metavar="NAME",
        help="Name (or unique prefix) of the block to extract, with its dependencies",
    )
    parser.add_argument(
        "-o", "--output",
        metavar="FILE",
        help="Output file; replaces the name derived from the document",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="exorg",
        description="exorg - Literate programming with Org documents",
    )
    parser.add_argument(
        "-c", "--config",
        metavar="FILE",
        help="Configuration file path",
    )
    parser.add_argument(
        "-C", "--directory",
        metavar="DIR",
        help="Working directory",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # tangle
    p_tangle = subparsers.add_parser(
        "tangle",
        help="Extract code blocks into source files",
    )
    p_tangle.add_argument(
        "format",
        metavar="FORMAT",
        help=(
            "Language to extract (e.g. python, rust, a #+SRC_LANG: language), "
            f"'jupyter' for a notebook, or '{COPY_TARGET}' for every block"
        ),
    )
    p_tangle.add_argument("file", metavar="FILE", help="Org document")
    _add_selection_arguments(p_tangle)
    p_tangle.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Show what would be done",
    )
    p_tangle.set_defaults(func=cmd_tangle)

    # weave
    p_weave = subparsers.add_parser(
        "weave",
        help="Typeset a document to PDF (requires emacs and pdflatex)",
    )
    p_weave.add_argument("file", metavar="FILE", help="Org document")
    p_weave.add_argument(
        "--minted",
        action="store_true",
        help="Highlight code blocks with the minted package",
    )
    p_weave.set_defaults(func=cmd_weave)

    # export
    p_export = subparsers.add_parser(
        "export",
        help="Weave for pdf/pdf-minted, tangle for any other format",
    )
    p_export.add_argument("format", metavar="FORMAT", help="Output format")
    p_export.add_argument("file", metavar="FILE", help="Org document")
    _add_selection_arguments(p_export)
    p_export.set_defaults(func=cmd_export)

    # blocks
    p_blocks = subparsers.add_parser(
        "blocks",
        help="List the code blocks of a document",
    )
    p_blocks.add_argument("file", metavar="FILE", help="Org document")
    p_blocks.add_argument(
        "name",
        nargs="?",
        metavar="NAME",
        help="Print the source of the blocks with this exact name",
    )
    p_blocks.set_defaults(func=cmd_blocks)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
