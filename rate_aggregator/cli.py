"""CLI entry point: JSON-lines snapshots in, rate metrics out."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import IO, Any, Dict, List, Mapping, Optional

from common.config import get_settings

from .config import ConfigError, RateAggregatorConfig
from .core.accumulator import Accumulator
from .core.engine import RateEngine
from .core.metric import Metric
from .runner import RateRunner
from .schemas import metric_to_json, parse_metric_line

logger = logging.getLogger(__name__)


class StreamAccumulator(Accumulator):
    """Writes every emitted metric as one JSON line."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self.written = 0

    def add_fields(
        self,
        name: str,
        fields: Dict[str, Any],
        tags: Mapping[str, str],
    ) -> None:
        self._stream.write(metric_to_json(Metric(name=name, tags=dict(tags), fields=fields)) + "\n")
        self.written += 1


class ReplayClock:
    """Clock driven by snapshot timestamps, falling back to wall-clock."""

    def __init__(self) -> None:
        self.current: Optional[float] = None

    def __call__(self) -> float:
        if self.current is None:
            return time.time()
        return self.current


def _csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def build_config(args: argparse.Namespace) -> RateAggregatorConfig:
    """Command-line options override the environment configuration."""
    base = RateAggregatorConfig.from_env().model_dump()
    if args.suffix is not None:
        base["suffix"] = args.suffix
    if args.metrics is not None:
        base["metrics"] = _csv(args.metrics)
    if args.rate_fields is not None:
        base["rate_fields"] = _csv(args.rate_fields)
    if args.bitrate_fields is not None:
        base["bitrate_fields"] = _csv(args.bitrate_fields)
    if args.keep_original:
        base["drop_original"] = False
    return RateAggregatorConfig.from_mapping(base)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description=RateEngine.description())
    p.add_argument("input", nargs="?", default="-", help="JSON-lines file ('-' for stdin)")
    p.add_argument("--suffix", default=None)
    p.add_argument("--metrics", default=None, help="comma-separated metric names")
    p.add_argument("--rate-fields", default=None, help="comma-separated rate fields")
    p.add_argument("--bitrate-fields", default=None, help="comma-separated bit-rate fields")
    p.add_argument("--keep-original", action="store_true", help="forward original metrics too")
    p.add_argument("--flush-every", type=int, default=0, help="flush after N lines (0 = only at EOF)")
    p.add_argument(
        "--use-metric-time",
        action="store_true",
        help="use snapshot timestamps instead of wall-clock time",
    )
    p.add_argument("--log-level", default=None)
    p.add_argument("--sample-config", action="store_true", help="print sample config and exit")
    return p


def run(
    lines,
    cfg: RateAggregatorConfig,
    out: IO[str],
    flush_every: int = 0,
    use_metric_time: bool = False,
) -> RateRunner:
    """Feed JSON lines through a RateRunner; returns it for inspection."""
    clock = ReplayClock()
    engine = RateEngine.from_config(cfg, clock=clock if use_metric_time else time.time)
    runner = RateRunner(engine, StreamAccumulator(out), period=cfg.period, drop_original=cfg.drop_original)

    rejected = 0
    count = 0
    for line in lines:
        line = line.strip()
        if not line:
            continue
        result = parse_metric_line(line)
        if not result.valid:
            rejected += 1
            continue

        if use_metric_time and result.metric.timestamp is not None:
            clock.current = result.metric.timestamp
        runner.submit(result.metric)
        count += 1

        if flush_every > 0 and count % flush_every == 0:
            runner.flush()

    runner.flush()
    logger.info("Procesadas %d líneas, rechazadas %d. %s", count, rejected, engine.stats)
    return runner


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    if args.sample_config:
        sys.stdout.write(RateEngine.sample_config())
        return 0

    try:
        cfg = build_config(args)
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    logger.info(
        "Config: suffix=%s metrics=%s rate_fields=%s bitrate_fields=%s",
        cfg.suffix, sorted(cfg.metrics), sorted(cfg.rate_fields), sorted(cfg.bitrate_fields),
    )

    if args.input == "-":
        run(sys.stdin, cfg, sys.stdout, args.flush_every, args.use_metric_time)
    else:
        with open(args.input, encoding="utf-8") as f:
            run(f, cfg, sys.stdout, args.flush_every, args.use_metric_time)
    return 0


if __name__ == "__main__":
    sys.exit(main())
