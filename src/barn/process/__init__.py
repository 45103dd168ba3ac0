"""Process invocation and output streaming for barn.

Public API:
    spawn -- Start an executable with both output channels piped
    ProcessHandle -- The running process owned by one request
    merge_streams -- Interleave stdout and stderr into one chunk sequence
"""

from barn.process.invoker import ProcessHandle, spawn
from barn.process.merger import merge_streams

__all__ = ["ProcessHandle", "merge_streams", "spawn"]
