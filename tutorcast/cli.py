"""CLI entry-point: generate lesson videos and manage their records."""

import json
import time
from pathlib import Path

import typer
from rich.console import Console

from tutorcast.config import get_settings
from tutorcast.jobs import GenerationRequest, QuizQuestion, ValidationError
from tutorcast.records import PersistTransportError
from tutorcast.render import sanitize_script
from tutorcast.services import build_services
from tutorcast.storage import UploadFailed
from tutorcast.subtitles import build_caption_file

app = typer.Typer(help="AI lesson video generator")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(None, help="Port (default from PORT)"),
):
    """Run the HTTP API."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("backend.main:app", host=host, port=port or settings.port)


@app.command()
def generate(
    subtopic: str = typer.Argument(..., help="Subtopic name"),
    script_path: Path = typer.Argument(..., help="Text file with the narration script"),
    questions_path: Path = typer.Option(None, "--questions", help="JSON list of {question, answer}"),
    presenter: str = typer.Option(None, help="Presenter id (default from settings)"),
    subtopic_id: str = typer.Option(None, "--subtopic-id", help="Record to update when done"),
    dbname: str = typer.Option(None, help="Database name"),
    collection: str = typer.Option(None, help="Collection (subject) name"),
):
    """Render a video and follow the job until it finishes."""
    console = Console()
    settings = get_settings()
    services = build_services(settings)

    questions = []
    if questions_path:
        with open(questions_path, "r", encoding="utf-8") as f:
            questions = [QuizQuestion.model_validate(q) for q in json.load(f)]

    request = GenerationRequest(
        subtopic=subtopic,
        description=script_path.read_text(encoding="utf-8"),
        questions=questions,
        presenter_id=presenter or settings.default_presenter_id,
        subtopic_id=subtopic_id,
        dbname=dbname or settings.default_dbname,
        subject_name=collection,
    )
    try:
        job = services.orchestrator.start(request)
    except ValidationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"Started job [bold]{job.job_id}[/bold]")
    last_progress = ""
    while True:
        current = services.registry.get(job.job_id)
        if current is None:
            break
        if current.progress != last_progress:
            console.print(f"  {current.progress}")
            last_progress = current.progress
        if current.status.is_terminal:
            break
        time.sleep(1)
    current = services.orchestrator.join(job.job_id)
    services.orchestrator.shutdown(wait=True)

    if current is None or current.result is None:
        console.print(f"[red]Job failed: {current.error if current else 'unknown'}[/red]")
        raise typer.Exit(1)
    console.print_json(json.dumps(current.to_status_payload(), default=str))


@app.command()
def persist(
    video_url: str = typer.Argument(..., help="Existing video URL to copy to S3"),
    subtopic_id: str = typer.Argument(..., help="Record id"),
    subtopic: str = typer.Option("", help="Subtopic name (used in the S3 file name)"),
    dbname: str = typer.Option(None, help="Database name"),
    collection: str = typer.Option(None, help="Collection (subject) name"),
):
    """Upload an existing video to S3 and save it onto its record."""
    console = Console()
    settings = get_settings()
    services = build_services(settings)
    try:
        result = services.orchestrator.persist_existing_video(
            video_url, subtopic, subtopic_id, dbname or settings.default_dbname, collection,
        )
    except UploadFailed as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        services.orchestrator.shutdown()
    console.print_json(result.model_dump_json())
    if not result.database_updated:
        raise typer.Exit(2)


@app.command()
def find(
    subtopic_id: str = typer.Argument(..., help="Record id"),
    dbname: str = typer.Option(None, help="Database name"),
    collection: str = typer.Option(None, help="Collection; all collections when omitted"),
):
    """Show where a record id is stored."""
    console = Console()
    settings = get_settings()
    services = build_services(settings)
    try:
        result = services.locator.find(subtopic_id, dbname or settings.default_dbname, collection)
    except PersistTransportError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    finally:
        services.orchestrator.shutdown()
    console.print_json(result.model_dump_json())
    if not result.found:
        raise typer.Exit(2)


@app.command()
def subtitles(
    script_path: Path = typer.Argument(..., help="Text file with the narration script"),
    words_per_minute: int = typer.Option(150, "--wpm", help="Reading rate"),
    output: Path = typer.Option(None, help="Write the WebVTT here instead of stdout"),
):
    """Print the WebVTT caption track for a script."""
    script = sanitize_script(script_path.read_text(encoding="utf-8"))
    vtt = build_caption_file(script, words_per_minute)
    if output:
        output.write_text(vtt, encoding="utf-8")
        Console().print(f"Wrote {output}")
    else:
        typer.echo(vtt, nl=False)


if __name__ == "__main__":
    app()
