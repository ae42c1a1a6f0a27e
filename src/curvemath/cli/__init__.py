"""
curvemath command line.

Commands:
- eval: Evaluate a formula at one or more points
- sample: Print evenly spaced samples as a table or JSON
- segments: Split sampled points into continuous drawable segments
- lut: Write a float32 look-up table to a .npy file
- check: Report syntax diagnostics for a formula
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path

import numpy as np
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from curvemath._version import get_version
from curvemath.config import CurvemathConfig, load_config
from curvemath.core.errors import CurvemathError, ExpressionSyntaxError
from curvemath.core.expression_lang import (
    NAMED_POLICIES,
    CompiledExpression,
    EvaluationPolicy,
    compile_expression,
)
from curvemath.sampling import build_lut, pi_aligned_grid, sample_uniform, split_segments

app = typer.Typer(
    help="Compile and evaluate single-variable formulas.",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"curvemath version {get_version()}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to curvemath.toml (default: ./curvemath.toml)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    try:
        ctx.obj = load_config(config)
    except CurvemathError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)


def _config(ctx: typer.Context) -> CurvemathConfig:
    return ctx.obj if isinstance(ctx.obj, CurvemathConfig) else CurvemathConfig()


def _resolve_policy(ctx: typer.Context, name: str | None) -> EvaluationPolicy:
    if name is None:
        return _config(ctx).policy()
    try:
        return NAMED_POLICIES[name]
    except KeyError:
        choices = ", ".join(sorted(NAMED_POLICIES))
        raise typer.BadParameter(f"Unknown policy {name!r} (choose from {choices})") from None


def _compile(ctx: typer.Context, expression: str) -> CompiledExpression:
    return compile_expression(expression, max_depth=_config(ctx).evaluator.max_depth)


def _format(value: float) -> str:
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return repr(value)


@app.command("eval")
def eval_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Formula in x, e.g. '3sin(x)+x^2'"),
    xs: list[float] = typer.Argument(..., help="Points to evaluate at (put -- before negatives)"),
    policy: str | None = typer.Option(None, "--policy", "-p", help="strict or absolute-sqrt"),
) -> None:
    """Evaluate a formula at one or more points."""
    chosen = _resolve_policy(ctx, policy)
    compiled = _compile(ctx, expression)
    for x in xs:
        typer.echo(f"{_format(x)}\t{_format(compiled.evaluate(x, chosen))}")


@app.command("sample")
def sample_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Formula in x"),
    x_min: float | None = typer.Option(None, "--min", help="Range start"),
    x_max: float | None = typer.Option(None, "--max", help="Range end"),
    resolution: int | None = typer.Option(None, "--resolution", "-r", help="Number of steps"),
    policy: str | None = typer.Option(None, "--policy", "-p", help="strict or absolute-sqrt"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Print evenly spaced samples of a formula."""
    settings = _config(ctx).sampling
    compiled = _compile(ctx, expression)
    try:
        samples = sample_uniform(
            compiled,
            settings.x_min if x_min is None else x_min,
            settings.x_max if x_max is None else x_max,
            settings.resolution if resolution is None else resolution,
            _resolve_policy(ctx, policy),
        )
    except CurvemathError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    pairs = list(zip(samples.xs.tolist(), samples.ys.tolist()))
    if as_json:
        # JSON has no NaN/inf; undefined samples become null
        payload = {
            "expression": compiled.source,
            "samples": [[x, y if math.isfinite(y) else None] for x, y in pairs],
        }
        typer.echo(json.dumps(payload))
        return

    table = Table(title=escape(compiled.source))
    table.add_column("x", justify="right")
    table.add_column("f(x)", justify="right")
    for x, y in pairs:
        shown = _format(y) if math.isfinite(y) else f"[yellow]{_format(y)}[/yellow]"
        table.add_row(_format(x), shown)
    console.print(table)


@app.command("segments")
def segments_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Formula in x"),
    x_min: float | None = typer.Option(None, "--min", help="Range start"),
    x_max: float | None = typer.Option(None, "--max", help="Range end"),
    resolution: int | None = typer.Option(
        None, "--resolution", "-r", help="Grid step is pi / resolution"
    ),
    max_segment_length: float | None = typer.Option(
        None, "--max-segment-length", help="Gaps longer than this are subdivided"
    ),
    max_draw_segment_length: float | None = typer.Option(
        None, "--max-draw-segment-length", help="Jumps longer than this start a new segment"
    ),
    policy: str | None = typer.Option(None, "--policy", "-p", help="strict or absolute-sqrt"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Split a sampled formula into continuous segments."""
    settings = _config(ctx).sampling
    compiled = _compile(ctx, expression)
    try:
        grid = pi_aligned_grid(
            settings.x_min if x_min is None else x_min,
            settings.x_max if x_max is None else x_max,
            settings.resolution if resolution is None else resolution,
        )
        segments = split_segments(
            compiled,
            grid,
            _resolve_policy(ctx, policy),
            max_segment_length=(
                settings.max_segment_length if max_segment_length is None else max_segment_length
            ),
            max_draw_segment_length=(
                settings.max_draw_segment_length
                if max_draw_segment_length is None
                else max_draw_segment_length
            ),
            max_subdivisions=settings.max_subdivisions,
        )
    except CurvemathError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    if as_json:
        payload = {
            "expression": compiled.source,
            "segments": [[list(point) for point in segment.points] for segment in segments],
        }
        typer.echo(json.dumps(payload))
        return

    table = Table(title=escape(compiled.source))
    table.add_column("#", justify="right")
    table.add_column("points", justify="right")
    table.add_column("from x", justify="right")
    table.add_column("to x", justify="right")
    for index, segment in enumerate(segments):
        table.add_row(
            str(index), str(len(segment)), _format(segment.xs[0]), _format(segment.xs[-1])
        )
    console.print(table)


@app.command("lut")
def lut_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Formula in x"),
    output: Path = typer.Argument(..., help="Destination .npy file"),
    size: int | None = typer.Option(None, "--size", "-s", help="Number of texels"),
    domain: float | None = typer.Option(None, "--range", help="Width of the sampled domain"),
    policy: str | None = typer.Option(None, "--policy", "-p", help="strict or absolute-sqrt"),
) -> None:
    """Write a float32 look-up table centred on x = 0."""
    settings = _config(ctx).lut
    compiled = _compile(ctx, expression)
    try:
        lut = build_lut(
            compiled,
            size=settings.size if size is None else size,
            domain=settings.domain if domain is None else domain,
            policy=_resolve_policy(ctx, policy),
            fill=settings.fill,
        )
    except CurvemathError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    np.save(output, lut)
    console.print(f"[green]Wrote {lut.size} texels to {output}[/green]")


@app.command("check")
def check_command(
    ctx: typer.Context,
    expression: str = typer.Argument(..., help="Formula in x"),
) -> None:
    """Report syntax diagnostics; exit code 1 when there are any."""
    compiled = _compile(ctx, expression)
    try:
        compiled.raise_for_diagnostics()
    except ExpressionSyntaxError as e:
        if e.context is not None:
            console.print(escape(e.context.format()), highlight=False)
        for diagnostic in e.diagnostics:
            console.print(
                f"[yellow]{diagnostic.kind.value}[/yellow] at {diagnostic.position}: "
                f"{escape(diagnostic.message)}"
            )
        if not compiled.valid:
            console.print("[red]Expression is invalid and evaluates to the invalid value[/red]")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {escape(compiled.source)}")


def main() -> None:
    """Console script entry point."""
    app()
