"""Command-line entry point for the news preview pipeline."""

import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich import print as rprint

from .config import get_settings
from .errors import PipelineError
from .logging_setup import configure_logging
from .models import PreviewResult
from .pipeline import produce_preview

app = typer.Typer(help="Scrape and summarize one article or social post URL.")


def format_markdown(preview: PreviewResult) -> str:
    """Render a preview as a Markdown reading card."""
    lines = [
        f"# {preview.title}",
        "",
        f"{preview.author} · {preview.publisher} · {preview.date}",
        "",
        preview.summary,
        "",
        "## Key points",
        *[f"- {point}" for point in preview.key_points],
        "",
        "## Statistics",
        *[
            f"- {stat.label}: {stat.value}" + (f" ({stat.context})" if stat.context else "")
            for stat in preview.statistics
        ],
        "",
        "## Condensed",
        preview.condensed_content,
        "",
        f"URL: {preview.article_url}",
    ]
    return "\n".join(lines)


def _write_output(out_path: Path, markdown: str, json_payload: dict[str, Any]) -> None:
    suffix = out_path.suffix.lower()
    if suffix == ".json":
        out_path.write_text(
            json.dumps(json_payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
    else:
        out_path.write_text(markdown, encoding="utf-8")


@app.command()
def run(
    url: str = typer.Argument(..., help="Absolute URL of the article or post."),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Optional path to write output (.md or .json). Defaults to stdout (Markdown).",
    ),
):
    """Run one URL through fetch -> extract -> summarize and print the preview."""
    configure_logging(get_settings().log_level)
    try:
        preview = produce_preview(url)
    except PipelineError as exc:
        rprint(f"[red]{exc.kind.value}: {exc.message}[/red]")
        raise typer.Exit(code=1)

    markdown = format_markdown(preview)
    if out:
        _write_output(out, markdown, preview.to_payload())
        rprint(f"[cyan]Wrote output to {out}[/cyan]")
    else:
        rprint(markdown)


def main():
    app()


if __name__ == "__main__":
    main()
