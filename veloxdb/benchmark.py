"""Put, get and scan benchmarks that write their results to CSV files."""

from __future__ import annotations

import argparse
import csv
import random
import shutil
import string
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .database import VeloxDB

__all__ = [
    "MB",
    "DB_NAME",
    "CHARSET",
    "BenchmarkResult",
    "generate_random_string",
    "benchmark_put",
    "benchmark_get",
    "benchmark_scan",
    "run_suite",
    "main",
]

# One "megabyte" of data, measured in 128-byte key-value records.
MB = 1024 * 1024 // 128
DB_NAME = "benchmark_db"
CHARSET = string.ascii_lowercase + string.ascii_uppercase + string.digits

_KEY_LENGTH = 28
_VALUE_LENGTH = 100
_SCAN_VALUE_LENGTH = 128
_INT_SIZE = 4
_BTREE_DEGREE = 3


@dataclass(frozen=True)
class BenchmarkResult:
    """One benchmark measurement.

    ``value`` is a throughput in MB/s for put and scan, and an average
    latency in milliseconds for get.
    """

    memtable_size_mb: int
    data_size_mb: int
    value: float
    inserted: int
    returned: int
    elapsed_ms: float

    def csv_row(self) -> List[str]:
        return [str(self.memtable_size_mb), str(self.data_size_mb), f"{self.value:g}"]


def generate_random_string(length: int, rng: Optional[random.Random] = None) -> str:
    """A string of ``length`` random letters and digits."""
    if length < 0:
        raise ValueError("Length must not be negative")
    rng = rng if rng is not None else random.Random()
    return "".join(rng.choice(CHARSET) for _ in range(length))


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


def _per_second(amount: float, elapsed_ms: float) -> float:
    return float("inf") if elapsed_ms <= 0 else amount / (elapsed_ms / 1000.0)


def _open_db(memtable_size: int, db_name: str) -> VeloxDB:
    db = VeloxDB(memtable_size, _BTREE_DEGREE)
    db.open(db_name)
    return db


def _remove_db(db_name: str) -> None:
    path = Path(db_name)
    try:
        if path.exists():
            shutil.rmtree(path)
            print(f"Deleted database directory: {db_name}")
    except OSError as exc:
        print(f"Error deleting database directory: {exc}", file=sys.stderr)


def _announce(kind: str, memtable_size: int, data_size_mb: int) -> None:
    print(
        f"Benchmarking {kind}: MemtableSize = {memtable_size // MB}MB, "
        f"DataSize = {data_size_mb}MB"
    )


def _insert_random(
    db: VeloxDB, data_size_mb: int, rng: random.Random
) -> List[str]:
    keys: List[str] = []
    inserted_bytes = 0
    while inserted_bytes < data_size_mb * MB:
        key = generate_random_string(_KEY_LENGTH, rng)
        value = generate_random_string(_VALUE_LENGTH, rng)
        db.put(key, value)
        keys.append(key)
        inserted_bytes += len(key) + len(value)
    return keys


def benchmark_put(
    data_size_mb: int,
    memtable_size: int,
    db_name: str = DB_NAME,
    rng: Optional[random.Random] = None,
) -> BenchmarkResult:
    """Time inserting ``data_size_mb`` of random records."""
    rng = rng if rng is not None else random.Random()
    _announce("Put", memtable_size, data_size_mb)
    db = _open_db(memtable_size, db_name)
    try:
        start = time.perf_counter()
        keys = _insert_random(db, data_size_mb, rng)
        elapsed = _elapsed_ms(start)
        db.close()
    finally:
        _remove_db(db_name)
    return BenchmarkResult(
        memtable_size // MB,
        data_size_mb,
        _per_second(float(data_size_mb), elapsed),
        len(keys),
        0,
        elapsed,
    )


def benchmark_get(
    data_size_mb: int,
    memtable_size: int,
    db_name: str = DB_NAME,
    rng: Optional[random.Random] = None,
) -> BenchmarkResult:
    """Insert random records, then time looking each of them up."""
    rng = rng if rng is not None else random.Random()
    _announce("Get", memtable_size, data_size_mb)
    db = _open_db(memtable_size, db_name)
    try:
        keys = _insert_random(db, data_size_mb, rng)
        start = time.perf_counter()
        found = sum(1 for key in keys if not db.get(key).is_empty())
        elapsed = _elapsed_ms(start)
        db.close()
    finally:
        _remove_db(db_name)
    latency = elapsed / len(keys) if keys else 0.0
    return BenchmarkResult(
        memtable_size // MB, data_size_mb, latency, len(keys), found, elapsed
    )


def benchmark_scan(
    data_size_mb: int,
    memtable_size: int,
    db_name: str = DB_NAME,
    rng: Optional[random.Random] = None,
) -> BenchmarkResult:
    """Insert integer keys 1, 2, ..., then time scanning the lower half."""
    rng = rng if rng is not None else random.Random()
    _announce("Scan", memtable_size, data_size_mb)
    db = _open_db(memtable_size, db_name)
    try:
        inserted_bytes = 0
        counter = 1
        while inserted_bytes < data_size_mb * MB:
            value = generate_random_string(_SCAN_VALUE_LENGTH, rng)
            db.put(counter, value)
            inserted_bytes += _INT_SIZE + len(value)
            counter += 1
        start = time.perf_counter()
        result = db.scan(1, counter // 2)
        elapsed = _elapsed_ms(start)
        db.close()
    finally:
        _remove_db(db_name)
    total_size = len(result) * (_INT_SIZE + _VALUE_LENGTH)
    return BenchmarkResult(
        memtable_size // MB,
        data_size_mb,
        _per_second(total_size / MB, elapsed),
        counter - 1,
        len(result),
        elapsed,
    )


@dataclass(frozen=True)
class _Suite:
    run: Callable[..., BenchmarkResult]
    directory: str
    header: str
    memtable_sizes: Sequence[int]
    start_mb: int
    end_mb: int


_SUITES: Dict[str, _Suite] = {
    "put": _Suite(
        benchmark_put,
        "put_throughput",
        "Throughput(MB/s)",
        (5 * MB, 25 * MB, 125 * MB),
        1,
        4096,
    ),
    "get": _Suite(
        benchmark_get,
        "get_latency",
        "AverageLatency(ms)",
        (25 * MB, 50 * MB, 100 * MB),
        128,
        4096,
    ),
    "scan": _Suite(
        benchmark_scan,
        "scan_throughput",
        "Throughput(MB/s)",
        (25 * MB, 50 * MB, 100 * MB),
        128,
        4096,
    ),
}


def _data_sizes(start_mb: int, end_mb: int) -> Iterable[int]:
    if start_mb < 1:
        raise ValueError("Start data size must be at least 1 MB")
    size = start_mb
    while size <= end_mb:
        yield size
        size *= 2


def run_suite(
    kind: str,
    output_dir: Optional[str] = None,
    memtable_sizes: Optional[Sequence[int]] = None,
    start_mb: Optional[int] = None,
    end_mb: Optional[int] = None,
    db_name: str = DB_NAME,
    rng: Optional[random.Random] = None,
) -> Path:
    """Run one benchmark over every memtable size and doubling data size.

    Results go to ``<output_dir>/<suite>.csv``; the path is returned.
    """
    try:
        suite = _SUITES[kind]
    except KeyError:
        raise ValueError(
            f"Unknown benchmark {kind!r}; expected one of {', '.join(_SUITES)}"
        ) from None
    rng = rng if rng is not None else random.Random()
    directory = Path(output_dir if output_dir is not None else f"./{suite.directory}")
    directory.mkdir(parents=True, exist_ok=True)
    csv_path = directory / f"{suite.directory}.csv"
    sizes = suite.memtable_sizes if memtable_sizes is None else memtable_sizes
    first = suite.start_mb if start_mb is None else start_mb
    last = suite.end_mb if end_mb is None else end_mb

    with open(csv_path, "w", newline="") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(["MemtableSizeMB", "DataSizeMB", suite.header])
        for memtable_size in sizes:
            for data_size in _data_sizes(first, last):
                result = suite.run(data_size, memtable_size, db_name, rng)
                writer.writerow(result.csv_row())
                handle.flush()

    print(f"Benchmark completed. Results saved to {csv_path}")
    return csv_path


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="veloxdb-benchmark", description="Benchmark the key-value store."
    )
    parser.add_argument("kind", choices=sorted(_SUITES), help="operation to benchmark")
    parser.add_argument("--output-dir", help="directory for the CSV file")
    parser.add_argument(
        "--memtable-entries",
        type=int,
        nargs="+",
        help="memtable sizes, in entries",
    )
    parser.add_argument("--start-mb", type=int, help="smallest data size in MB")
    parser.add_argument("--end-mb", type=int, help="largest data size in MB")
    parser.add_argument("--db-name", default=DB_NAME, help="scratch database directory")
    parser.add_argument("--seed", type=int, help="random seed")
    args = parser.parse_args(argv)

    rng = random.Random(args.seed if args.seed is not None else time.time_ns())
    try:
        run_suite(
            args.kind,
            args.output_dir,
            args.memtable_entries,
            args.start_mb,
            args.end_mb,
            args.db_name,
            rng,
        )
    except (ValueError, OSError) as exc:
        print(f"Benchmark failed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())