"""
Profiling utilities for the import/export pipeline.

`profile_block` measures wall-clock time (perf_counter) and peak RSS (psutil,
sampled on a background thread) around a pipeline stage. The orchestrator logs
the result next to each ingest and export so slow or memory-heavy archives
show up in the service logs.

Usage:
    from priceport.utils.profiler import profile_block

    with profile_block("ingest") as stats:
        transfer.handle_ingest(content_type, body)

    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for profiling measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    extra: dict[str, Any] = field(default_factory=dict)

    def as_log_extra(self) -> Dict[str, Any]:
        """Flatten into a dict suitable for `logger.info(..., extra=...)`."""
        payload: Dict[str, Any] = {
            "stage": self.label,
            "duration_ms": round(self.duration_seconds * 1000, 2),
            "peak_rss_bytes": self.peak_rss_bytes,
        }
        payload.update(self.extra)
        return payload


@contextlib.contextmanager
def profile_block(
    label: str, sample_interval_ms: int = 50
) -> Generator[ProfileStats, None, None]:
    """
    Context manager to time a block and track its peak resident memory.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.
    sample_interval_ms : int
        Interval in milliseconds for RSS sampling.

    Notes
    -----
    Stats are filled in even when the block raises, so failures can be logged
    with their timing.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    peak_rss = process.memory_info().rss
    stop_sampling = threading.Event()

    def _sample_memory() -> None:
        nonlocal peak_rss
        while not stop_sampling.is_set():
            try:
                peak_rss = max(peak_rss, process.memory_info().rss)
            except psutil.Error:
                return
            stop_sampling.wait(timeout=sample_interval_ms / 1000.0)

    sampler = threading.Thread(target=_sample_memory, daemon=True)
    sampler.start()

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        stop_sampling.set()
        sampler.join(timeout=1.0)
        stats.peak_rss_bytes = peak_rss


__all__ = ["ProfileStats", "profile_block"]
