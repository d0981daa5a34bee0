"""Output generation for TaxonID.

Identifier and candidate tables are written as CSV or Parquet with polars.
Reading a file back picks the format from its extension.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import polars as pl

from taxonid.config import OUTPUT_FORMATS

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def write_table(df: pl.DataFrame, path: PathLike, output_format: Optional[str] = None) -> Path:
    """Write a table to disk.

    Args:
        df: The table to write
        path: Destination file; parent directories are created
        output_format: ``csv`` or ``parquet``; inferred from the suffix when omitted

    Returns:
        The path written
    """
    path = Path(path)
    output_format = output_format or path.suffix.lstrip(".").lower() or "csv"
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format: {output_format}")

    path.parent.mkdir(parents=True, exist_ok=True)
    if output_format == "parquet":
        df.write_parquet(path)
    else:
        df.write_csv(path)
    logger.info(f"Wrote {df.height} rows to {path}")
    return path


def read_table(path: PathLike) -> pl.DataFrame:
    """Read a table written by ``write_table``."""
    path = Path(path)
    if path.suffix.lower() == ".parquet":
        return pl.read_parquet(path)
    if path.suffix.lower() == ".csv":
        return pl.read_csv(path)
    raise ValueError(f"Cannot infer table format from '{path.name}'")


def safe_filename(name: str) -> str:
    """Turn a taxon name into a file name stem."""
    stem = re.sub(r"[^A-Za-z0-9._-]+", "_", name.strip()).strip("_")
    return stem or "unnamed"


def write_candidate_tables(
    tables: Sequence[Tuple[str, Optional[pl.DataFrame]]],
    output_dir: PathLike,
    output_format: str = "csv",
) -> List[Path]:
    """Write one candidate table per name into a directory.

    Names without candidates are skipped. Repeated names get a numeric suffix.

    Returns:
        The paths written, in input order
    """
    output_dir = Path(output_dir)
    written = []
    used = set()
    for name, table in tables:
        if table is None:
            logger.info(f"No candidates to write for taxon '{name}'")
            continue
        stem = safe_filename(name)
        candidate_stem, n = stem, 1
        while candidate_stem in used:
            n += 1
            candidate_stem = f"{stem}_{n}"
        used.add(candidate_stem)
        written.append(write_table(table, output_dir / f"{candidate_stem}.{output_format}", output_format))
    return written
