"""Data models shared across the CLI, reader core, and logging layers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class GlobalSettings:
    """Global knobs that apply across profiles."""

    encoding: str = "utf-8"
    error_policy: str = "fail-fast"  # fail-fast | replace


@dataclass(slots=True)
class ReaderProfile:
    """Profile-specific reader tuning."""

    description: str
    chunk_size: int = 16
    sample_size: int = 10
    skip_header: bool = False


@dataclass(slots=True)
class RuntimeConfig:
    """Resolved configuration for a single run."""

    global_settings: GlobalSettings
    profile: ReaderProfile


@dataclass(slots=True)
class ReadEvent:
    """Structured record of one random line read."""

    source: str
    offset: int
    line_start: int
    resume_offset: int
    wrapped_to_start: bool
    chunk_reads: int
    line_bytes: int
    duration_ms: Optional[float] = None


@dataclass(slots=True)
class SampledRow:
    """Row produced by the sampler together with its position in the file."""

    offset: int
    text: str
    line_start: int
    resume_offset: int
    wrapped_to_start: bool = False
    header_skipped: bool = False
