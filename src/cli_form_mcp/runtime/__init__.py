"""Runtime module for running the worker process and collecting its output.

This module provides thread-per-stream output collection with a
non-blocking poll, process-group kill, and async follow helpers.
"""

from __future__ import annotations

from .child_process import ChildProcess, OutputAggregator, StdinFile, StdinSource, StdinText
from .follow import follow, wait_finished
from .stream_reader import END_OF_STREAM, DecodePolicy, StreamReader
from .worker import WorkerTarget

__all__ = [
    "ChildProcess",
    "DecodePolicy",
    "END_OF_STREAM",
    "OutputAggregator",
    "StdinFile",
    "StdinSource",
    "StdinText",
    "StreamReader",
    "WorkerTarget",
    "follow",
    "wait_finished",
]
