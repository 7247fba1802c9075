"""CLI entrypoint for Repo Chat."""

from __future__ import annotations

import json
import os
from typing import Optional

import requests
import typer

app = typer.Typer(name="repochat", help="Repo Chat command-line interface")
collections_app = typer.Typer(name="collections", help="Manage vector collections")
app.add_typer(collections_app, name="collections")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("REPOCHAT_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    kwargs.setdefault("timeout", 600)
    resp = requests.request(method, url, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def ingest(
    url: str = typer.Argument(..., help="Repository URL or owner/repo"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ingest a GitHub repository into the vector index."""
    resp = _request("POST", "/api/process", host=host, json={"url": url})
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def chat(
    question: str = typer.Argument(..., help="Question about the ingested repository"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask a question and print the answer as it streams in."""
    payload = {"messages": [{"role": "user", "content": question}]}
    with _request("POST", "/api/chat", host=host, json=payload, stream=True) as resp:
        for fragment in resp.iter_content(chunk_size=None, decode_unicode=True):
            if fragment:
                typer.echo(fragment, nl=False)
    typer.echo()


@app.command()
def clone(
    url: str = typer.Argument(..., help="Repository URL"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Clone a repository onto the server's disk."""
    resp = _request("POST", "/api/download", host=host, json={"url": url})
    typer.echo(json.dumps(resp.json(), indent=2))


@collections_app.command("list")
def list_collections(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List vector collections."""
    resp = _request("GET", "/api/clear-db", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@collections_app.command("clear")
def clear_collections(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Delete every vector collection."""
    if not yes:
        typer.confirm("Delete all collections?", abort=True)
    resp = _request("DELETE", "/api/clear-db", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def serve(
    bind: str = typer.Option("127.0.0.1", "--bind", help="Interface to listen on"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
) -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run("repo_chat.app:app", host=bind, port=port)


if __name__ == "__main__":
    app()
