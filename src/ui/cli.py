"""CLI shell for random line reads, sampling, and throughput checks."""
from __future__ import annotations

import argparse
import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Sequence

from common.config import error_mode_from_policy, load_runtime_config
from common.errors import BackendError
from common.models import RuntimeConfig, SampledRow
from common.progress import BenchmarkRecorder, ReadEventLogger
from core.lines import RandomLineReader
from core.sampling import RowSampler

FALLBACK_ENCODING = "cp1251"


def open_reader(
    path: Path,
    runtime: RuntimeConfig,
    *,
    event_log: Optional[str] = None,
) -> RandomLineReader:
    logger = ReadEventLogger(Path(event_log)) if event_log else None
    return RandomLineReader.open(
        path,
        runtime.global_settings.encoding,
        chunk_size=runtime.profile.chunk_size,
        errors=error_mode_from_policy(runtime.global_settings.error_policy),
        event_logger=logger,
    )


def resolve_runtime(args: argparse.Namespace) -> RuntimeConfig:
    overrides: dict = {}
    if getattr(args, "encoding", None):
        overrides["global"] = {"encoding": args.encoding}
    if getattr(args, "chunk_size", None):
        overrides["profile"] = {"chunk_size": args.chunk_size}
    config_path = Path(args.config) if getattr(args, "config", None) else None
    return load_runtime_config(args.profile, config_path=config_path, overrides=overrides)


def render_row(row: SampledRow) -> None:
    wrapped = " wrapped" if row.wrapped_to_start else ""
    print(f"[{row.line_start}:{row.resume_offset}{wrapped}] {row.text}")


def command_line_at(args: argparse.Namespace) -> None:
    runtime = resolve_runtime(args)
    path = Path(args.file)
    print(f"[line-at] Using encoding: {runtime.global_settings.encoding}")
    try:
        text, resume_offset, wrapped = _read_single(path, runtime, args)
    except UnicodeDecodeError:
        print(f"UnicodeDecodeError: retrying with {FALLBACK_ENCODING} encoding...")
        runtime.global_settings.encoding = FALLBACK_ENCODING
        text, resume_offset, wrapped = _read_single(path, runtime, args)
    print(text)
    print(f"[line-at] resume_offset={resume_offset} wrapped_to_start={wrapped}")


def command_sample(args: argparse.Namespace) -> None:
    runtime = resolve_runtime(args)
    path = Path(args.file)
    count = args.count or runtime.profile.sample_size
    skip_header = args.skip_header or runtime.profile.skip_header
    print(
        f"Sampling {count} row(s) from {path} using profile '{args.profile}' "
        f"(chunk_size={runtime.profile.chunk_size}, skip_header={skip_header})"
    )
    try:
        rows = _sample_rows(path, runtime, args, count=count, skip_header=skip_header)
    except UnicodeDecodeError:
        print(f"UnicodeDecodeError: retrying with {FALLBACK_ENCODING} encoding...")
        runtime.global_settings.encoding = FALLBACK_ENCODING
        rows = _sample_rows(path, runtime, args, count=count, skip_header=skip_header)
    for row in rows:
        render_row(row)
    if args.output:
        write_rows_jsonl(rows, Path(args.output))
        print(f"[sample] Wrote {len(rows)} row(s) to {args.output}")


def command_walk(args: argparse.Namespace) -> None:
    runtime = resolve_runtime(args)
    with open_reader(Path(args.file), runtime, event_log=args.event_log) as reader:
        sampler = RowSampler(reader, skip_header=args.skip_header or runtime.profile.skip_header)
        produced = 0
        for row in sampler.walk(args.offset, limit=args.limit):
            render_row(row)
            produced += 1
    print(f"[walk] {produced} row(s) from offset {args.offset}")


def command_benchmark(args: argparse.Namespace) -> None:
    runtime = resolve_runtime(args)
    path = Path(args.file)
    recorder = BenchmarkRecorder(Path(args.log))
    with open_reader(path, runtime) as reader:
        sampler = RowSampler(reader, seed=args.seed)
        start = time.perf_counter()
        rows = sampler.sample(args.count)
        duration = time.perf_counter() - start
        size = reader.length()
    throughput = len(rows) / duration if duration else 0.0
    recorder.record(
        dataset=str(path),
        metrics={
            "seconds": duration,
            "reads": len(rows),
            "reads_per_second": throughput,
            "chunk_size": runtime.profile.chunk_size,
            "file_bytes": size,
        },
    )
    print(
        f"Benchmark complete: {len(rows)} random read(s) in {duration:.2f}s, "
        f"throughput {throughput:,.0f} reads/s"
    )


def write_rows_jsonl(rows: Sequence[SampledRow], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as handle:
        for row in rows:
            handle.write(json.dumps(asdict(row), ensure_ascii=False))
            handle.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rlr", description="Random-access line reader for large delimited files"
    )
    subparsers = parser.add_subparsers(dest="command")

    line_at = subparsers.add_parser("line-at", help="Print the line found at a byte offset")
    line_at.add_argument("file", help="Delimited data file")
    line_at.add_argument("offset", type=int, help="Byte offset into the file")
    line_at.add_argument(
        "--skip-fragment",
        action="store_true",
        help="Scan forward only: skip a partial line under the offset",
    )
    _add_common_options(line_at)
    line_at.set_defaults(func=command_line_at)

    sample = subparsers.add_parser("sample", help="Print rows drawn at random offsets")
    sample.add_argument("file", help="Delimited data file")
    sample.add_argument("--count", type=int, help="Number of rows (defaults to profile sample_size)")
    sample.add_argument("--seed", type=int, help="Seed for reproducible draws")
    sample.add_argument("--skip-header", action="store_true", help="Never return the first line")
    sample.add_argument("--output", help="Optional JSONL file for sampled rows")
    _add_common_options(sample)
    sample.set_defaults(func=command_sample)

    walk = subparsers.add_parser("walk", help="Print consecutive rows from an offset")
    walk.add_argument("file", help="Delimited data file")
    walk.add_argument("--offset", type=int, default=0, help="Starting byte offset")
    walk.add_argument("--limit", type=int, help="Stop after this many rows")
    walk.add_argument("--skip-header", action="store_true", help="Never return the first line")
    _add_common_options(walk)
    walk.set_defaults(func=command_walk)

    benchmark = subparsers.add_parser("benchmark", help="Measure random read throughput")
    benchmark.add_argument("file", help="Delimited data file")
    benchmark.add_argument("--count", type=int, default=1000, help="Number of random reads")
    benchmark.add_argument("--seed", type=int, help="Seed for reproducible draws")
    benchmark.add_argument(
        "--log",
        default="artifacts/benchmarks.jsonl",
        help="Where to append benchmark metrics",
    )
    _add_common_options(benchmark, event_log=False)
    benchmark.set_defaults(func=command_benchmark)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    try:
        args.func(args)
    except BackendError as exc:
        raise SystemExit(f"[{args.command}] {exc}") from exc
    except UnicodeDecodeError as exc:
        # walk prints rows as it goes, so a retry would repeat them
        raise SystemExit(
            f"[{args.command}] UnicodeDecodeError: {exc.reason} at byte {exc.start}; "
            "pass --encoding to read this file"
        ) from exc


# ---------------------------------------------------------------------------
# Internal helpers


def _add_common_options(parser: argparse.ArgumentParser, *, event_log: bool = True) -> None:
    parser.add_argument(
        "--profile",
        default="default",
        help="Profile from config/defaults.json (e.g., default, large_lines)",
    )
    parser.add_argument("--config", help="Alternative configuration JSON")
    parser.add_argument("--encoding", help="Override the configured text encoding")
    parser.add_argument("--chunk-size", type=int, help="Override the profile chunk size")
    if event_log:
        parser.add_argument("--event-log", help="Path to JSONL file for structured read events")


def _read_single(path: Path, runtime: RuntimeConfig, args: argparse.Namespace):
    with open_reader(path, runtime, event_log=args.event_log) as reader:
        return reader.read_line_at(args.offset, skip_leading_fragment=args.skip_fragment)


def _sample_rows(
    path: Path,
    runtime: RuntimeConfig,
    args: argparse.Namespace,
    *,
    count: int,
    skip_header: bool,
) -> List[SampledRow]:
    with open_reader(path, runtime, event_log=args.event_log) as reader:
        sampler = RowSampler(reader, seed=args.seed, skip_header=skip_header)
        return sampler.sample(count)


if __name__ == "__main__":
    main()
