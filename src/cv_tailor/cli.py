"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from cv_tailor.config import load_config
from cv_tailor.export.layout import PageGeometry
from cv_tailor.export.pdf_renderer import document_title, render_layout, write_pdf
from cv_tailor.models.requests import UploadRequest
from cv_tailor.parsers.media import guess_media_type
from cv_tailor.parsers.sanitizer import sanitize
from cv_tailor.pipeline.orchestrator import PipelineOrchestrator, PipelineStage

app = typer.Typer(
    name="cv-tailor",
    help="Tailor a resume to a job description and render it as PDF",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
    )


@app.command()
def tailor(
    resume: Path = typer.Argument(help="Resume file (PDF/DOCX/TXT/MD/PNG/JPG)"),
    job_title: str = typer.Option("", "--job-title", help="Target job title"),
    company: str = typer.Option("", "--company", help="Target company name"),
    jd: Path = typer.Option(None, "--jd", help="Job description text file"),
    user_id: str = typer.Option(None, "--user-id", help="Owner recorded with the result"),
    local_extract: bool = typer.Option(False, "--local-extract", help="Extract text locally instead of via Claude"),
    config_path: Path = typer.Option(None, "--config", "-c", help="config.yaml path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Run the full pipeline on a resume file and print the response."""
    _setup_logging(verbose)
    if not resume.exists():
        console.print(f"[red]Resume file not found: {resume}[/red]")
        raise typer.Exit(1)
    if jd is not None and not jd.exists():
        console.print(f"[red]Job description file not found: {jd}[/red]")
        raise typer.Exit(1)

    config = load_config(config_path)
    orchestrator = PipelineOrchestrator.from_config(config, local_extract=local_extract)
    request = UploadRequest(
        data=resume.read_bytes(),
        file_name=resume.name,
        media_type=guess_media_type(resume.name),
        user_id=user_id,
        job_title=job_title,
        company_name=company,
        job_description=jd.read_text(encoding="utf-8") if jd else None,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Tailoring resume...", total=None)

        def on_phase(stage: PipelineStage, detail: str) -> None:
            label = stage.value.replace("_", " ")
            progress.update(task, description=f"{label}: {detail}" if detail else label)

        body = asyncio.run(orchestrator.handle_upload(request, on_phase=on_phase))

    if body.get("success"):
        console.print(
            Panel(
                f"Record: {body['tailoredResumeId']}\n"
                f"PDF: {body['downloadUrl']}\n"
                f"Markdown: {body.get('markdownUrl') or 'not uploaded'}\n"
                f"[bold green]Score: {body['score']}[/bold green]",
                title="Tailored resume",
            )
        )
    else:
        console.print(
            Panel(
                f"[red]{body['error']}[/red]\n[dim]{body['errorCode']}: {body['technicalError']}[/dim]",
                title="Tailoring failed",
            )
        )
    if verbose:
        console.print_json(json.dumps(body))
    if not body.get("success"):
        raise typer.Exit(1)


@app.command()
def render(
    markdown: Path = typer.Argument(help="Tailored resume markdown file"),
    output: Path = typer.Option(None, "--output", "-o", help="Output PDF path"),
    context: str = typer.Option("", "--context", help="Sub-line under the name, e.g. 'Backend Engineer | Acme'"),
    generated_on: str = typer.Option(None, "--date", help="Footer date (default: today)"),
    config_path: Path = typer.Option(None, "--config", "-c", help="config.yaml path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Render constrained markdown to PDF without calling any external service."""
    _setup_logging(verbose)
    if not markdown.exists():
        console.print(f"[red]Markdown file not found: {markdown}[/red]")
        raise typer.Exit(1)

    config = load_config(config_path)
    geometry = PageGeometry(
        width=config.render.page_width,
        height=config.render.page_height,
        margin=config.render.margin,
        line_gap=config.render.line_gap,
    )
    markdown_text = sanitize(markdown.read_text(encoding="utf-8"))
    layout = render_layout(
        markdown_text,
        headline=context,
        generated_on=generated_on or date.today().isoformat(),
        geometry=geometry,
    )
    pdf_bytes = write_pdf(layout, geometry, title=document_title(markdown_text))

    if output is None:
        output = markdown.with_suffix(".pdf")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(pdf_bytes)
    console.print(f"[green]PDF saved: {output} ({layout.page_count} page(s))[/green]")


@app.command()
def templates() -> None:
    """List available style templates."""
    from cv_tailor.templates.loader import list_templates, load_template

    for name in list_templates():
        t = load_template(name)
        console.print(f"[bold]{name}[/bold] - {t.description}")
        for s in t.sections:
            req = "" if s.required else " [dim](optional)[/dim]"
            console.print(f"  {s.label}{req}")


if __name__ == "__main__":
    app()
