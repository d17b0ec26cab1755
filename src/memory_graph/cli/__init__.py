"""memory-graph CLI."""

import typer
from dotenv import load_dotenv

from memory_graph.cli.db import db
from memory_graph.cli.graph import graph
from memory_graph.cli.server import serve
from memory_graph.logging_config import setup_logging

load_dotenv()

app = typer.Typer(
    name="memory-graph",
    help="Persistent knowledge graph memory served over MCP",
    add_completion=False,
)

app.add_typer(db, name="db")
app.add_typer(graph, name="graph")
app.command("serve", help="Run the knowledge graph MCP server")(serve)


@app.callback()
def configure():
    """Persistent knowledge graph memory served over MCP."""
    setup_logging()


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
