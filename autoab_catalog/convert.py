#!/usr/bin/env python3
"""Convert a JSON snapshot of catalog records to a DuckDB database.

The JSON file may be a plain array of documents or an object holding the
array under ``"data"``.  Mongo extended JSON (``{"$oid": ...}``,
``{"$date": ...}``) is unwrapped.

Usage:
  autoab-convert data/records.json
  autoab-convert data/records.json --output data/catalog.duckdb --force
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from autoab_catalog.core.exceptions import StorageUnavailableError
from autoab_catalog.repositories.duckdb_repository import DuckDBRecordStorage
from autoab_catalog.repositories.memory_repository import InMemoryRecordStorage

logger = logging.getLogger(__name__)


def convert(source: Path, output: Path, force: bool = False) -> int:
    """Write every record in *source* to a new DuckDB file at *output*."""
    if output.exists():
        if not force:
            raise FileExistsError(f"{output} already exists (use --force to replace it)")
        output.unlink()
    output.parent.mkdir(parents=True, exist_ok=True)

    storage = InMemoryRecordStorage.from_json(source)
    return DuckDBRecordStorage.write_database(output, storage.records)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Convert catalog records from JSON to DuckDB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("source", type=Path, help="JSON file with catalog records")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("data/catalog.duckdb"),
        help="DuckDB file to create (default: data/catalog.duckdb)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace the output file if it exists",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    start = time.time()
    try:
        written = convert(args.source, args.output, force=args.force)
    except (FileExistsError, StorageUnavailableError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logger.info(f"Converted {written} records in {time.time() - start:.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
