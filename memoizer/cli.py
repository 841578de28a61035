#!/usr/bin/env python3
"""
Command line driver for the memoizer.

Each command decodes its tail arguments as numeric literals and runs one
demonstration:

- sum:  print the total of the values
- avg:  print the mean of the values
- fib:  print the memoized Fibonacci number for the first value
- memo: call a memoized slow operation repeatedly with the first value as the
        delay in seconds; only the first call blocks
"""

import argparse
import sys
import time
from typing import Callable, Dict, List, Optional, Sequence

from shared.config import MemoizerConfig, get_config
from shared.errors import MemoizerException, ValidationError
from shared.logging import configure_logging, get_logger, set_command_context, set_run_id
from shared.metrics import MetricsCollector, get_metrics_collector
from .caching.memo_cache import MemoCache, memoize
from .caching.recursive_memo import make_fib_memo
from .numeric import average, format_number, parse_numbers, total
from .slow import as_whole_seconds, slow_operation


logger = get_logger("memoizer.cli")


def run_sum(values: List[float], config: MemoizerConfig, metrics: Optional[MetricsCollector]) -> Optional[str]:
    return format_number(total(values))


def run_avg(values: List[float], config: MemoizerConfig, metrics: Optional[MetricsCollector]) -> Optional[str]:
    return format_number(average(values))


def run_fib(values: List[float], config: MemoizerConfig, metrics: Optional[MetricsCollector]) -> Optional[str]:
    """Memoized Fibonacci of the first value; prints nothing without one."""
    if not values:
        return None

    fib_memo = make_fib_memo(MemoCache("fib_memo", lock_mode=config.lock_mode, metrics=metrics))
    result = fib_memo(values[0])

    logger.info("Fibonacci computed", index=values[0], cache=fib_memo.cache.stats())
    return format_number(result)


def run_memo(values: List[float], config: MemoizerConfig, metrics: Optional[MetricsCollector]) -> Optional[str]:
    """Call a memoized slow operation once, then ``repeat_calls`` more times."""
    if not values:
        raise ValidationError("memo requires a delay in seconds")
    seconds = as_whole_seconds(values[0])

    slow_memo = memoize(slow_operation, lock_mode=config.lock_mode, metrics=metrics, name="slow_operation")

    result = None
    for call in range(config.repeat_calls + 1):
        start = time.perf_counter()
        result = slow_memo(seconds)
        logger.info(
            "Memoized call returned",
            call=call,
            seconds=seconds,
            duration=time.perf_counter() - start,
        )

    logger.info("Memo demo completed", cache=slow_memo.cache_info())
    return format_number(result)


COMMANDS: Dict[str, Callable[[List[float], MemoizerConfig, Optional[MetricsCollector]], Optional[str]]] = {
    "sum": run_sum,
    "avg": run_avg,
    "fib": run_fib,
    "memo": run_memo,
}


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="memoizer", description="Memoization demonstrations over numeric arguments.")
    parser.add_argument("command", choices=sorted(COMMANDS), help="Demonstration to run")
    parser.add_argument("values", nargs="*", help="Numeric literals (use -- before values such as -1e3 or -inf)")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    config = get_config()
    configure_logging(config.service_name, config.log_level)
    set_run_id()
    set_command_context(args.command)

    metrics = get_metrics_collector(config.service_name) if config.enable_metrics else None

    try:
        values = parse_numbers(args.values)
        output = COMMANDS[args.command](values, config, metrics)
    except KeyboardInterrupt:
        return 130
    except MemoizerException as exc:
        response = exc.to_response()
        if metrics:
            metrics.record_error(response.code)
        logger.error("Command failed", code=response.code, error=response.message, details=response.details)
        print(f"[memoizer] {response.code}: {response.message}", file=sys.stderr)
        return 2

    if output is not None:
        print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
