#!/usr/bin/env python3
"""
StateSpace Performance Benchmarks
=================================

Measures action dispatch, upward propagation through deep trees and list
reconciliation, scaling each workload until it fills the time limit.

Usage:
    python scripts/benchmark.py                  # Run all benchmarks
    python scripts/benchmark.py --time-limit 0.2 # Shorter runs
    python scripts/benchmark.py --config         # Show configuration
"""

import argparse
import gc
import time
from dataclasses import dataclass
from typing import Callable, List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from statespace import Space

# Configuration
TIME_LIMIT_SECONDS = 1.0
STARTING_N = 10
SCALE_FACTOR = 1.5
MAX_N = 1_000_000


@dataclass
class BenchmarkConfig:
    """Benchmark configuration parameters."""

    time_limit: float = TIME_LIMIT_SECONDS
    starting_n: int = STARTING_N
    scale_factor: float = SCALE_FACTOR


@dataclass
class BenchmarkMetrics:
    """Result of one benchmark."""

    operation: str
    max_n: int
    operation_time: float
    operations_per_second: float


def run_adaptive_benchmark(
    operation: str, operation_func: Callable[[int], int], config: BenchmarkConfig
) -> BenchmarkMetrics:
    """Grow the workload until one run takes ``time_limit``, then measure it."""
    n = config.starting_n
    while True:
        start = time.perf_counter()
        operation_func(n)
        elapsed = time.perf_counter() - start
        if elapsed >= config.time_limit or n > MAX_N:
            break
        n = int(n * config.scale_factor) + 1

    gc.collect()
    start = time.perf_counter()
    performed = operation_func(n)
    elapsed = time.perf_counter() - start

    return BenchmarkMetrics(
        operation=operation,
        max_n=n,
        operation_time=elapsed,
        operations_per_second=performed / elapsed if elapsed > 0 else 0,
    )


# =============================================================================
# Workloads
# =============================================================================


def root_updates(n: int) -> int:
    space = Space({"count": 0})
    increment = space.do_action(lambda ctx, event: {"count": ctx.state["count"] + 1})
    for _ in range(n):
        increment()
    return n


def deep_propagation(n: int) -> int:
    """Update a leaf 20 levels below the root ``n`` times."""
    state = {"value": 0}
    for _ in range(20):
        state = {"child": state}
    space = Space(state)
    leaf = space
    for _ in range(20):
        leaf = leaf.sub_space("child")
    bump = leaf.do_action(lambda ctx, event: {"value": event})
    for i in range(n):
        bump(i)
    return n


def list_item_updates(n: int) -> int:
    """Toggle items of a 100 element list through their child spaces."""
    space = Space({"todos": []})
    space.do_action(
        lambda ctx, event: {
            "todos": [ctx.sub_space({"id": i, "done": False}) for i in range(100)]
        }
    )()
    items = [space.sub_space("todos", i) for i in range(100)]
    toggles = [item.do_action(lambda ctx, event: {"done": not ctx.state["done"]}) for item in items]
    for i in range(n):
        toggles[i % 100]()
    return n


def subscriber_fan_out(n: int) -> int:
    """Updates with 50 subscribers on each of three levels."""
    space = Space({"child": {"leaf": {}}})
    child = space.sub_space("child")
    leaf = child.sub_space("leaf")
    for node in (space, child, leaf):
        for _ in range(50):
            node.subscribe(lambda state: None)
    update = leaf.do_action(lambda ctx, event: {"value": event})
    for i in range(n):
        update(i)
    return n


def add_and_remove(n: int) -> int:
    """Declare a list child and remove it again through its own action."""
    space = Space({"items": []})
    add = space.do_action(
        lambda ctx, event: {"items": ctx.state["items"] + [ctx.sub_space({"id": event})]}
    )
    for i in range(n):
        add(i)
        space.sub_space("items", i).do_action(lambda ctx, event: None)()
    return n


BENCHMARKS = [
    ("Root Updates", root_updates),
    ("Deep Propagation (20 levels)", deep_propagation),
    ("List Item Updates", list_item_updates),
    ("Subscriber Fan-out", subscriber_fan_out),
    ("Add / Remove List Child", add_and_remove),
]


class SpaceBenchmark:
    """Benchmark suite for space trees."""

    def __init__(self, config: BenchmarkConfig):
        self.console = Console()
        self.config = config
        self.results: List[BenchmarkMetrics] = []

    def run(self) -> None:
        start_time = time.time()
        self.console.print(
            Panel.fit(
                "[bold cyan]StateSpace Benchmarks[/bold cyan]\n"
                f"[dim]time limit {self.config.time_limit:.2f}s per workload[/dim]"
            )
        )

        for name, operation in BENCHMARKS:
            self.console.print(f"[yellow]Running {name} benchmark...[/yellow]")
            result = run_adaptive_benchmark(name, operation, self.config)
            self.results.append(result)
            self.console.print(
                f"[green]✓[/green] {name}: {result.operations_per_second:,.0f} ops/sec "
                f"(n={result.max_n:,})"
            )

        self._display_results()
        elapsed = time.time() - start_time
        self.console.print(f"\n[dim]Benchmark suite completed in {elapsed:.2f} seconds[/dim]")

    def _display_results(self) -> None:
        table = Table(title="Results")
        table.add_column("Operation", style="cyan")
        table.add_column("N", justify="right")
        table.add_column("Time (s)", justify="right")
        table.add_column("Ops/sec", justify="right", style="green")
        table.add_column("µs/op", justify="right")
        for result in self.results:
            per_op = (
                result.operation_time / result.max_n * 1_000_000 if result.max_n else 0
            )
            table.add_row(
                result.operation,
                f"{result.max_n:,}",
                f"{result.operation_time:.3f}",
                f"{result.operations_per_second:,.0f}",
                f"{per_op:.2f}",
            )
        self.console.print()
        self.console.print(table)


def main() -> None:
    parser = argparse.ArgumentParser(description="StateSpace performance benchmarks")
    parser.add_argument("--time-limit", type=float, default=TIME_LIMIT_SECONDS)
    parser.add_argument("--starting-n", type=int, default=STARTING_N)
    parser.add_argument("--config", action="store_true", help="Show configuration and exit")
    args = parser.parse_args()

    config = BenchmarkConfig(time_limit=args.time_limit, starting_n=args.starting_n)
    if args.config:
        Console().print(config)
        return

    SpaceBenchmark(config).run()


if __name__ == "__main__":
    main()
