"""
deepbook – generate a book from topic keywords
 • CLI flags: --config PATH (JSON answers), --out-dir PATH
 • Outline → chapter outlines → parts, then book.txt + run_status.json

    python -m deepbook generate --topic "futures trading" --chapters 8
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional

import typer
from pydantic import ValidationError
from rich import print

from deepbook import logconf
from deepbook.config import ClientConfig
from deepbook.llm.client import CompletionClient
from deepbook.manuscript import read_status, write_manuscript
from deepbook.models import RunParameters
from deepbook.pipeline import HierarchicalGenerator

app = typer.Typer(pretty_exceptions_show_locals=False)


@app.command()
def generate(
    topic: Optional[str] = typer.Option(None, help="topic keywords"),
    chapters: Optional[int] = typer.Option(None, help="target chapter count"),
    parts: Optional[int] = typer.Option(None, help="force this many parts per chapter"),
    model: Optional[str] = typer.Option(None),
    temperature: Optional[float] = typer.Option(None),
    max_tokens: Optional[int] = typer.Option(None),
    out_dir: Path = typer.Option(Path("output"), "--out-dir"),
    config: Optional[Path] = typer.Option(None, "--config"),
    summaries: bool = typer.Option(True, "--summaries/--no-summaries"),
    title: bool = typer.Option(True, "--title/--no-title"),
    log_level: str = typer.Option("INFO"),
):
    logconf.init(log_level, out_dir / "logs")

    cfg: Dict = json.loads(config.read_text("utf-8")) if config else {}
    if cfg:
        print(f"[yellow]Loaded answers from {config}[/]")

    def ans(key: str, given, prompt: str, default=None):
        if given is not None:
            return given
        return cfg[key] if key in cfg else typer.prompt(prompt, default=default)

    print("[bold cyan]─── deepbook ───[/]\n")
    try:
        params = RunParameters(
            topic=ans("topic", topic, "Topic keywords"),
            chapters=int(ans("chapters", chapters, "Chapters", "5")),
            parts_override=parts if parts is not None else cfg.get("parts"),
            summaries=summaries and cfg.get("summaries", True),
            title_block=title and cfg.get("title_block", True),
        )
        client_cfg = ClientConfig.from_env(
            model=model or cfg.get("model"),
            temperature=temperature if temperature is not None else cfg.get("temperature"),
            max_tokens=max_tokens or cfg.get("max_tokens"),
        )
    except ValidationError as e:
        print(f"[red]Invalid settings:[/]\n{e}")
        raise typer.Exit(2)

    if not client_cfg.has_credential:
        print("[red]DEEPSEEK_API_KEY is not configured (set it in the environment or .env).[/]")
        raise typer.Exit(2)

    result = HierarchicalGenerator(CompletionClient(client_cfg), params).run()
    path = write_manuscript(result, out_dir, model=client_cfg.model)

    for w in result.warnings:
        print(f"[yellow]⚠ {w}[/]")
    if path is None:
        print(f"[red]❌ Could not write output to {out_dir}[/]")
    if not result.succeeded:
        print(f"[red]❌ Generation failed at {result.failed_stage} "
              f"after {result.attempts} attempt(s):[/] {result.error}")
        if path:
            print(f"[yellow]Partial text kept in {path}[/]")
        raise typer.Exit(1)
    if path is None:
        raise typer.Exit(1)
    print(f"[green]✔ Book saved to {path}[/]")


@app.command()
def status(out_dir: Path = typer.Option(Path("output"), "--out-dir")):
    """Show the outcome of the last run in OUT_DIR."""
    info = read_status(out_dir)
    if info is None:
        print(f"[yellow]No book generated yet in {out_dir}[/]")
        return
    colour = "green" if info["status"] == "success" else "red"
    print(f"[{colour}]{info['status']}[/]  {info['total_words']:,} words, "
          f"{len(info['chapters'])} chapters ({info['finished_at']})")
    if info.get("failed_stage"):
        print(f"  failed at {info['failed_stage']} after {info['attempts']} attempt(s)")
    for w in info.get("warnings", []):
        print(f"  [yellow]⚠ {w}[/]")


if __name__ == "__main__":
    app()
