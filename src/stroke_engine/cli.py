"""StrokeEngine CLI.

Usage:
    stroke-engine recognize stroke.json --library templates.json
    stroke-engine analyze stroke.json [--json]
    stroke-engine simplify stroke.json --epsilon 5 -o simplified.json
    stroke-engine add-template stroke.json --library templates.json --name zap
    stroke-engine templates --library templates.json

Stroke files are JSON: ``{"points": [[x, y], ...]}`` or a bare list of pairs.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
import yaml

from stroke_engine.config import EngineConfig
from stroke_engine.models import GestureLibrary, Stroke

app = typer.Typer(
    name="stroke-engine",
    help="✏️  Stroke geometry analysis and gesture recognition.",
    add_completion=False,
)


@app.callback()
def _configure(
    log_level: str = typer.Option("warning", "--log-level", help="Log level"),
):
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str):
    typer.secho(f"❌ {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _load_stroke(path: str) -> Stroke:
    p = Path(path)
    if not p.exists():
        _fail(f"Stroke file not found: {path}")
    try:
        with open(p) as f:
            return Stroke.from_dict(json.load(f))
    except (json.JSONDecodeError, ValueError) as e:
        _fail(f"Invalid stroke file {path}: {e}")


def _load_config(path: Optional[str]) -> EngineConfig:
    if path is None:
        return EngineConfig()
    if not Path(path).exists():
        _fail(f"Config file not found: {path}")
    try:
        return EngineConfig.from_yaml(path)
    except (yaml.YAMLError, ValueError) as e:
        _fail(f"Invalid config {path}: {e}")


def _load_library(path: str) -> GestureLibrary:
    if not Path(path).exists():
        _fail(f"Library not found: {path}")
    try:
        return GestureLibrary.from_file(path)
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        _fail(f"Invalid library {path}: {e}")


@app.command()
def recognize(
    stroke: str = typer.Argument(..., help="Stroke JSON file"),
    library: Optional[str] = typer.Option(None, help="Template library JSON (default: built-ins)"),
    config: Optional[str] = typer.Option(None, help="Engine config YAML"),
    threshold: Optional[float] = typer.Option(None, help="Override max match distance"),
):
    """Match a stroke against a template library."""
    from stroke_engine.recognizer import PointCloudRecognizer

    cfg = _load_config(config)
    points = _load_stroke(stroke)
    if library:
        templates = _load_library(library)
    else:
        templates = GestureLibrary.with_defaults(cfg.num_points, cfg.square_size)

    recognizer = PointCloudRecognizer.from_config(cfg)
    result = recognizer.match(points, templates, max_distance=threshold)

    if result is None:
        typer.echo("🤷 No match")
        return
    typer.echo(f"✅ {result.name} (distance: {result.distance:.3f})")


@app.command()
def analyze(
    stroke: str = typer.Argument(..., help="Stroke JSON file"),
    config: Optional[str] = typer.Option(None, help="Engine config YAML"),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
):
    """Report straight runs, right angles and self-intersections of a stroke."""
    from stroke_engine.analyzer import analyze_stroke

    cfg = _load_config(config)
    report = analyze_stroke(_load_stroke(stroke), cfg)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return

    typer.echo(f"📏 Points: {report.point_count}  length: {report.path_length:.2f}")
    typer.echo(f"   Straight segment:   {'yes' if report.contains_line else 'no'}")
    typer.echo(f"   Right angles:       {report.right_angles.count}")
    typer.echo(f"   Self-intersections: {len(report.intersections)}")
    for hit in report.intersections:
        typer.echo(f"     at ({hit.point[0]:.2f}, {hit.point[1]:.2f}) angle {hit.angle:.1f}°")
    typer.echo(f"   Simplified points:  {len(report.simplified)}")
    typer.echo(f"   Closed:             {'yes' if report.is_closed else 'no'}")


@app.command()
def simplify(
    stroke: str = typer.Argument(..., help="Stroke JSON file"),
    epsilon: Optional[float] = typer.Option(None, help="RDP tolerance (default from config)"),
    config: Optional[str] = typer.Option(None, help="Engine config YAML"),
    output: Optional[str] = typer.Option(None, "-o", help="Write simplified stroke here"),
):
    """Simplify a stroke with Ramer-Douglas-Peucker."""
    from stroke_engine.simplify import simplify_stroke

    cfg = _load_config(config)
    eps = cfg.simplify_epsilon if epsilon is None else epsilon
    if eps < 0:
        _fail(f"epsilon must be >= 0, got {eps}")

    original = _load_stroke(stroke)
    simplified = simplify_stroke(original, eps)

    if output:
        out = Path(output)
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w") as f:
            json.dump(simplified.to_dict(), f)
        typer.echo(f"💾 {len(original)} → {len(simplified)} points, saved to {output}")
    else:
        typer.echo(json.dumps(simplified.to_dict()))


@app.command("add-template")
def add_template(
    strokes: list[str] = typer.Argument(..., help="Stroke JSON file(s) forming one template"),
    library: str = typer.Option(..., help="Template library JSON (created if missing)"),
    name: Optional[str] = typer.Option(None, help="Template name (default: 'Template <n>')"),
    config: Optional[str] = typer.Option(None, help="Engine config YAML"),
):
    """Normalize strokes and append them to a library as a new template."""
    cfg = _load_config(config)
    lib = _load_library(library) if Path(library).exists() else GestureLibrary()

    try:
        template = lib.add_from_strokes(
            [_load_stroke(s) for s in strokes],
            name=name,
            num_points=cfg.num_points,
            size=cfg.square_size,
        )
    except ValueError as e:
        _fail(str(e))

    lib.save_to_file(library)
    typer.echo(f"💾 Saved template '{template.name}' ({len(lib)} in library)")


@app.command()
def templates(
    library: str = typer.Option(..., help="Template library JSON"),
):
    """List the templates in a library."""
    lib = _load_library(library)
    if not len(lib):
        typer.echo("📭 Library is empty")
        return
    for i, template in enumerate(lib):
        typer.echo(f"   {i:3d}  {template.name}  ({len(template.strokes)} stroke(s))")


def main():
    app()


if __name__ == "__main__":
    main()
