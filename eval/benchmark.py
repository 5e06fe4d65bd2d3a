# ruff: noqa: B008
"""Time set construction, intersection and union over arithmetic progressions."""

from __future__ import annotations

import statistics
import time
from pathlib import Path

import typer

from bigset import create
from bigset.database import remove_database_files

app = typer.Typer(help="Benchmark bigset operations for growing set sizes.")


def _progression(offset: int, step: int, count: int) -> range:
    return range(offset, offset + step * count, step)


def run_operations(size: int, path: Path | None = None) -> float:
    """Build three sets of ``size`` elements, intersect pairs and union the results."""

    started = time.perf_counter()
    with create(int, path=path) as store:
        store.add_seq("fives", _progression(0, 5, size))
        store.add_seq("sevens", _progression(0, 7, size))
        store.add_seq("nines", _progression(0, 9, size))
        store.intersection("5 and 7", "fives", "sevens")
        store.intersection("5 and 9", "fives", "nines")
        store.union("union", "5 and 7", "5 and 9")
    return time.perf_counter() - started


@app.command()
def main(
    sizes: list[int] = typer.Option([10, 100, 1000], "--size", help="Set sizes to benchmark"),
    repeats: int = typer.Option(5, min=1, help="Runs per size"),
    path: Path | None = typer.Option(
        None, help="Persist to this database file instead of a temporary one"
    ),
) -> None:
    """Print the median and best wall time for each set size."""

    for size in sizes:
        timings = []
        for _ in range(repeats):
            # each run starts from an empty database
            if path is not None:
                remove_database_files(path)
            timings.append(run_operations(size, path))
        median = statistics.median(timings)
        typer.echo(
            f"size={size:>8} runs={repeats} median={median * 1000:.2f}ms "
            f"best={min(timings) * 1000:.2f}ms"
        )


if __name__ == "__main__":
    app()
