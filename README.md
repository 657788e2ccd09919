# veloxdb

An embedded key-value store laid out the way log-structured stores are:

- writes go into an in-memory **memtable**, a red-black tree;
- when the memtable holds its threshold number of entries, the next write
  first flushes it to a new **SST file**, stored as a B+ tree of 4 KiB pages;
- page reads go through a **buffer pool** with LRU, CLOCK or RANDOM eviction;
- `get` looks in the memtable first, then in the SST files from newest to
  oldest.

Keys and values may be `int`, `float`, `str`, or a single character wrapped
in `Char`. Integers that fit in 32 bits are stored as `INT`, larger ones as
`LONG`. Numeric keys compare with one another by value; numbers sort before
characters, and characters before strings. Records compare and hash by key
only.

## Installation

```
pip install .
```

Python 3.10 or later. No third-party dependencies.

## Usage

```python
from veloxdb.database import VeloxDB
from veloxdb.buffer_pool import EvictionPolicy

with VeloxDB(memtable_size=1000, btree_degree=3) as db:
    db.open("my_db")
    db.put(1, "one")
    db.put("apple", 42)

    print(db.get(1).value)               # "one"
    print(db.get("missing").is_empty())  # True

    for kv in db.scan(1, 100):           # sorted list of KeyValue
        print(kv.key, kv.value)

    db.set_buffer_pool_parameters(128, EvictionPolicy.CLOCK)
    print(db.cache_hits())
```

- `open(name)` creates the directory `name` if needed; new SST files are
  written there. Opening an already open database raises `RuntimeError`.
- `close()`, or leaving the `with` block while open, flushes whatever the
  memtable holds to a new SST file.
- `put`, `get` and `close` on a database that is not open raise
  `RuntimeError`.
- `get` returns an empty `KeyValue` (`is_empty()` is true) when the key is
  absent.
- `scan(small, large)` returns the distinct records with keys in the closed
  range, sorted; a record in the memtable wins over one on disk with an
  equal key, and a newer SST file wins over an older one.
- `set_buffer_pool_parameters` gives every existing SST file a fresh, empty
  page cache of the given capacity and policy.

The building blocks can be used on their own:

- `veloxdb.keyvalue` — `KeyValue`, `KeyValueType`, `Char`; `to_bytes` /
  `from_bytes` for the record encoding, `describe` for a readable dump
- `veloxdb.red_black_tree` — `RedBlackTree` (`insert`, `get_value`,
  `delete_key`, `scan`, `items`, `to_list`, `black_height`)
- `veloxdb.binary_tree` — `BinaryTree`, `TreeNode`, `Color`
- `veloxdb.page` — `Page`, `PageType`, `SSTMetadata`
- `veloxdb.page_manager` — `PageManager`, page reads and writes of one file
- `veloxdb.buffer_pool` — `BufferPool`, `EvictionPolicy`, `PageId`
- `veloxdb.disk_btree` — `DiskBTree`, building or opening one SST file
- `veloxdb.sst_file_manager` — `SSTFileManager`
- `veloxdb.memtable` — `Memtable`
- `veloxdb.file_manager` — `FileManager`, `SSTHeader`, `FlushSSTInfo`: a
  separate flat file format (header plus length-prefixed records) that can
  be written and read back into a `RedBlackTree`; the database does not use
  it

## What it does not do

- **Reopening.** SST files already on disk are loaded only from the
  directory `defaultDB`, when a `VeloxDB` is created; `open(name)` does not
  load SST files already in `name`. A `VeloxDB` always creates `defaultDB`
  in the working directory.
- **Deleting.** The database has no delete operation; records can only be
  overwritten by a later `put` with an equal key.
- **Compaction.** SST files are never merged or removed.
- There is no write-ahead log: writes still in the memtable are lost if the
  process ends without `close`.

## Benchmarks

`veloxdb-benchmark` measures put throughput, get latency or scan throughput
for several memtable sizes and doubling data sizes, writing a CSV file:

```
veloxdb-benchmark put --memtable-entries 1000 --start-mb 1 --end-mb 4 --seed 1
veloxdb-benchmark --help
```

Arguments: `put`, `get` or `scan`; `--output-dir` (default
`./put_throughput`, `./get_latency` or `./scan_throughput`),
`--memtable-entries`, `--start-mb`, `--end-mb`, `--db-name` (a scratch
directory, default `benchmark_db`, deleted after each run) and `--seed`.
A "megabyte" here is 8192 records of 128 bytes. The defaults run up to
4096 such megabytes, which takes a long time.

The same runs are available from Python as `benchmark_put`,
`benchmark_get`, `benchmark_scan` and `run_suite` in `veloxdb.benchmark`.

## Running the tests

```
pip install ".[test]"
pytest
```