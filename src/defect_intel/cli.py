"""CLI entry point for defect-intel."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
import yaml

from defect_intel import __version__
from defect_intel.config import load_settings
from defect_intel.engine import EngineResult, run_engine
from defect_intel.store import load_history


@click.command()
@click.argument("data_dir", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.option(
    "-f", "--format", "fmt",
    type=click.Choice(["md", "pdf", "json"], case_sensitive=False),
    default="md",
    help="Output format (default: md).",
)
@click.option(
    "-o", "--output",
    type=click.Path(resolve_path=True),
    default=None,
    help="Output file path. Defaults to stdout for md/json, or report.pdf for pdf.",
)
@click.option("--page", "page_url", default=None, help="Restrict every source to one page URL.")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    default=None,
    help="YAML settings file. Defaults to <data_dir>/defect_intel.yaml when present.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose logging.")
@click.version_option(version=__version__)
def main(
    data_dir: str,
    fmt: str,
    output: str | None,
    page_url: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Build the defect graph, registry and readiness verdict from stored QA runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    data_path = Path(data_dir)
    try:
        settings = load_settings(Path(config_path) if config_path else None, data_path)
    except (ValueError, yaml.YAMLError) as exc:
        # pydantic.ValidationError is a ValueError
        raise click.BadParameter(str(exc), param_hint="--config") from exc

    history = load_history(data_path, settings)
    result = run_engine(history, target_url=page_url, settings=settings)

    if fmt == "json":
        _output_json(result, output)
    elif fmt == "pdf":
        _output_pdf(result, output)
    else:
        _output_md(result, output)


def _output_md(result: EngineResult, output: str | None) -> None:
    from defect_intel.render.markdown import render_markdown
    md = render_markdown(result)
    if output:
        Path(output).write_text(md)
        click.echo(f"Report written to {output}")
    else:
        click.echo(md)


def _output_pdf(result: EngineResult, output: str | None) -> None:
    from defect_intel.render.pdf import render_pdf
    dest = Path(output) if output else Path("report.pdf")
    render_pdf(result, dest)
    click.echo(f"PDF report written to {dest}")


def _output_json(result: EngineResult, output: str | None) -> None:
    text = json.dumps(result.to_dict(), indent=2)
    if output:
        Path(output).write_text(text)
        click.echo(f"JSON report written to {output}")
    else:
        click.echo(text)


if __name__ == "__main__":
    main()
