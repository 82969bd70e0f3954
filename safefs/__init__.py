"""
safefs - crash-safe file read, write and append
"""

from loguru import logger

from safefs.codec import ReturnAs
from safefs.config import Settings, load_settings
from safefs.errors import DecodeError, FailureKind, SafeFsError, classify_failure
from safefs.fileops import FileOps
from safefs.options import AppendOptions, ReadOptions, WriteOptions
from safefs.recovery import RemnantReport, RemnantState, find_remnants, inspect_remnants

__version__ = "0.1.0"

# Library logging stays quiet unless the application opts in.
logger.disable("safefs")

_default = FileOps()

read = _default.read
write = _default.write
append = _default.append
read_async = _default.read_async
write_async = _default.write_async
append_async = _default.append_async

__all__ = [
    "AppendOptions",
    "DecodeError",
    "FailureKind",
    "FileOps",
    "ReadOptions",
    "RemnantReport",
    "RemnantState",
    "ReturnAs",
    "SafeFsError",
    "Settings",
    "WriteOptions",
    "append",
    "append_async",
    "classify_failure",
    "find_remnants",
    "inspect_remnants",
    "load_settings",
    "read",
    "read_async",
    "write",
    "write_async",
]
