"""An embedded key-value store: a red-black tree memtable, B+ tree SST files and a page buffer pool."""

__version__ = "0.1.0"