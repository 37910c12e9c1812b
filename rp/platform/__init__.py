"""Platform abstraction layer."""

from .files import atomic_write_text, copy_file, iter_regular_files, remove_path, sha256_file
from .process import ProcessError, child_env, run, run_streaming

__all__ = [
    # files
    "atomic_write_text",
    "copy_file",
    "iter_regular_files",
    "remove_path",
    "sha256_file",
    # process
    "ProcessError",
    "child_env",
    "run",
    "run_streaming",
]
