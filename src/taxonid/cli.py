"""TaxonID command-line interface.

This module provides the argument parser and command dispatching logic for
the ``taxonid`` command.
"""

import argparse
import logging
import sys
from typing import List, Optional

import polars as pl

from taxonid import __version__
from taxonid.api import as_eolid, as_iucn, as_wiki
from taxonid.config import OUTPUT_FORMATS, WIKI_SITES, Config
from taxonid.conservation import iucn_summary, iucn_summary_id
from taxonid.exceptions import BatchResolutionError, ConfigurationError
from taxonid.logging_config import setup_logging
from taxonid.output_manager import write_candidate_tables, write_table
from taxonid.providers import PROVIDERS, create_provider
from taxonid.resolver import Resolver
from taxonid.types.identifiers import InputShape

logger = logging.getLogger(__name__)

COERCERS = {"eol": as_eolid, "wiki": as_wiki, "iucn": as_iucn}


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        description="TaxonID: Resolve species names to EOL, Wikimedia and IUCN Red List identifiers.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set logging level"
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Optional file to write logs to (in addition to console output)"
    )

    provider_group = parser.add_argument_group("Provider Settings")
    provider_group.add_argument(
        "--eol-key",
        type=str,
        help="EOL API key (defaults to the EOL_KEY environment variable)"
    )
    provider_group.add_argument(
        "--iucn-key",
        type=str,
        help="IUCN Red List API token (defaults to the IUCN_REDLIST_KEY environment variable)"
    )
    provider_group.add_argument(
        "--wiki-site",
        choices=WIKI_SITES,
        help="Wiki to search with the wiki provider"
    )
    provider_group.add_argument(
        "--wiki-lang",
        type=str,
        help="Wikipedia language subdomain (used with --wiki-site pedia)"
    )

    meta_group = parser.add_argument_group("Application Metadata")
    meta_group.add_argument(
        "--show-config",
        action="store_true",
        help="Show current configuration and exit"
    )
    meta_group.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show version number and exit"
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- 'resolve' command ---
    parser_resolve = subparsers.add_parser(
        "resolve", help="Resolve names to one identifier each"
    )
    _add_provider_argument(parser_resolve)
    parser_resolve.add_argument("names", nargs="+", help="Taxon names to resolve")
    _add_rows_argument(parser_resolve)
    parser_resolve.add_argument(
        "--no-ask",
        action="store_true",
        help="Never prompt; names with several candidates are left unresolved"
    )
    parser_resolve.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of names resolved concurrently (only with --no-ask)"
    )
    parser_resolve.add_argument(
        "--strict",
        action="store_true",
        help="Exit with an error if any provider request failed"
    )
    parser_resolve.add_argument(
        "-o", "--output",
        type=str,
        help="Write the identifier table to this .csv or .parquet file instead of printing it"
    )

    # --- 'candidates' command ---
    parser_candidates = subparsers.add_parser(
        "candidates", help="Show every candidate found for each name"
    )
    _add_provider_argument(parser_candidates)
    parser_candidates.add_argument("names", nargs="+", help="Taxon names to search for")
    _add_rows_argument(parser_candidates)
    parser_candidates.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of names searched concurrently"
    )
    parser_candidates.add_argument(
        "-o", "--output-dir",
        type=str,
        help="Directory to write one candidate table per name into"
    )
    parser_candidates.add_argument(
        "--output-format",
        choices=OUTPUT_FORMATS,
        default="csv",
        help="Output file format"
    )

    # --- 'check' command ---
    parser_check = subparsers.add_parser(
        "check", help="Coerce known identifiers and confirm them with the provider"
    )
    _add_provider_argument(parser_check)
    parser_check.add_argument("ids", nargs="+", help="Identifiers to coerce")
    parser_check.add_argument(
        "--no-check",
        action="store_true",
        help="Do not contact the provider"
    )

    # --- 'iucn-summary' command ---
    parser_iucn = subparsers.add_parser(
        "iucn-summary", help="Summarize IUCN Red List status"
    )
    parser_iucn.add_argument("names", nargs="+", help="Taxon names (or ids with --by-id)")
    parser_iucn.add_argument(
        "--by-id",
        action="store_true",
        help="Treat the arguments as IUCN taxon ids"
    )
    parser_iucn.add_argument(
        "--distr-detail",
        action="store_true",
        help="Group countries by distribution code"
    )

    return parser


def _add_provider_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p", "--provider",
        choices=list(PROVIDERS),
        required=True,
        help="Provider to query"
    )


def _add_rows_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--rows",
        type=int,
        nargs="+",
        help="Only consider these 1-based candidate rows"
    )


def build_config(args: argparse.Namespace) -> Config:
    """Build the configuration from the environment and command-line overrides."""
    return Config.from_env(
        eol_key=args.eol_key,
        iucn_key=args.iucn_key,
        wiki_site=args.wiki_site,
        wiki_lang=args.wiki_lang,
    )


# -----------------------------------------------------------------------------
# Dispatch Functions for Each Command
# -----------------------------------------------------------------------------
def run_resolve(args: argparse.Namespace, config: Config) -> int:
    """Resolve names and print or write the identifier table."""
    provider = create_provider(args.provider, config)
    resolver = Resolver(provider, detail_workers=config.detail_workers)
    try:
        ids = resolver.resolve(
            args.names,
            ask=not args.no_ask,
            rows=args.rows,
            max_workers=args.workers,
            progress_bar=len(args.names) > 1,
            strict=args.strict,
        )
    except BatchResolutionError as e:
        logger.error(str(e))
        print(e.results.to_table())
        return 1

    table = ids.to_table()
    if args.output:
        write_table(table, args.output)
    else:
        with pl.Config(tbl_rows=-1, fmt_str_lengths=80):
            print(table)
    return 0


def run_candidates(args: argparse.Namespace, config: Config) -> int:
    """Collect candidate tables and print or write them."""
    provider = create_provider(args.provider, config)
    resolver = Resolver(provider, detail_workers=config.detail_workers)
    tables = resolver.resolve_all(
        args.names,
        rows=args.rows,
        max_workers=args.workers,
        progress_bar=len(args.names) > 1,
    )
    if args.output_dir:
        written = write_candidate_tables(tables, args.output_dir, args.output_format)
        logger.info(f"Wrote {len(written)} candidate table(s) to {args.output_dir}")
        return 0

    for name, table in tables:
        print(f"\n{name}")
        if table is None:
            print("  no candidates")
        else:
            print(table)
    return 0


def run_check(args: argparse.Namespace, config: Config) -> int:
    """Coerce identifiers and print their table."""
    coerce = COERCERS[args.provider]
    ids = coerce(args.ids, InputShape.SEQUENCE, check=not args.no_check, config=config)
    print(ids.to_table())
    return 0


def run_iucn_summary(args: argparse.Namespace, config: Config) -> int:
    """Print the Red List status of each taxon."""
    if args.by_id:
        summaries = iucn_summary_id(args.names, config, distr_detail=args.distr_detail)
    else:
        summaries = iucn_summary(args.names, config, distr_detail=args.distr_detail)

    for key, summary in summaries.items():
        print(f"{key}: {summary.status or 'NA'}")
        if summary.distr is None:
            continue
        if isinstance(summary.distr, dict):
            for code, countries in summary.distr.items():
                print(f"  {code}: {', '.join(countries['country'].to_list())}")
        else:
            print(f"  countries: {', '.join(summary.distr)}")
    return 0


COMMANDS = {
    "resolve": run_resolve,
    "candidates": run_candidates,
    "check": run_check,
    "iucn-summary": run_iucn_summary,
}


# -----------------------------------------------------------------------------
# Main Entry Point
# -----------------------------------------------------------------------------
def main(args: Optional[List[str]] = None) -> int:
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    try:
        config = build_config(parsed_args)
    except ValueError as e:
        parser.error(str(e))

    # Global commands are handled before subcommand dispatch
    if parsed_args.show_config:
        print(config.get_config_summary())
        return 0

    if parsed_args.command is None:
        parser.error("a command is required: " + ", ".join(COMMANDS))

    setup_logging(parsed_args.log_level, parsed_args.log_file)

    try:
        return COMMANDS[parsed_args.command](parsed_args, config)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
