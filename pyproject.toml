[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "veloxdb"
version = "0.1.0"
description = "A small log-structured key-value store with a red-black tree memtable, B+ tree SST files and a page buffer pool"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "key-value",
    "database",
    "lsm",
    "memtable",
    "b-tree",
    "red-black-tree",
    "buffer-pool",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
veloxdb-benchmark = "veloxdb.benchmark:main"

[tool.hatch.build.targets.wheel]
packages = ["veloxdb"]

[tool.pytest.ini_options]
addopts = "-ra"
