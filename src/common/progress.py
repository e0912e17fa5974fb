"""Structured event logging utilities."""
from __future__ import annotations

import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from .models import ReadEvent


class ReadEventLogger:
    """Writes one JSONL record per random line read for later inspection."""

    def __init__(self, path: Optional[Path]) -> None:
        self.path = path
        if path:
            path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event: ReadEvent) -> None:
        if not self.path:
            return
        payload = asdict(event)
        payload["timestamp"] = time.time()
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload))
            handle.write("\n")


class MemoryEventLogger(ReadEventLogger):
    """Keeps events in memory; handy for tests and short CLI runs."""

    def __init__(self) -> None:
        super().__init__(None)
        self.events: List[ReadEvent] = []

    def emit(self, event: ReadEvent) -> None:
        self.events.append(event)


class BenchmarkRecorder:
    """Stores throughput measurements for later analysis."""

    def __init__(self, path: Path) -> None:
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)

    def record(self, dataset: str, metrics: dict) -> None:
        payload = {"dataset": dataset, **metrics, "timestamp": time.time()}
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload))
            handle.write("\n")
