import json
from typing import Annotated, Optional

from rich.console import Console
from rich.table import Table
from typer import Argument, Exit, Option, Typer

from .errors import SearchGatewayError
from .models import FacetRequest, SearchRequest, SearchResponse, SearchStrategy, SortOption
from .server import configure_logging, run_server
from .service import SearchService

app = Typer(help="Keyword, semantic and hybrid search over Solr.")

ConfigOption = Annotated[
    Optional[str],
    Option("--config", "-c", help="Path to the gateway YAML configuration."),
]
LogLevelOption = Annotated[
    Optional[str],
    Option("--log-level", help="Logging level, e.g. DEBUG or INFO."),
]


def build_service(config_path: str | None) -> SearchService:
    return SearchService.from_config(config_path)


def _build_request(
    query: str,
    strategy: SearchStrategy | None,
    rows: int | None,
    start: int,
    filters: list[str] | None,
    facets: list[str] | None,
    vector_fields: list[str] | None,
    sort: str | None,
) -> SearchRequest:
    sort_option = None
    if sort:
        field, _, order = sort.partition(" ")
        sort_option = SortOption(field=field, order=order or "desc")
    return SearchRequest(
        query=query,
        strategy=strategy,
        rows=rows,
        start=start,
        filters=filters or [],
        facets=[FacetRequest(field=name) for name in facets or []],
        vector_fields=vector_fields or [],
        sort=sort_option,
    )


def _print_response(console: Console, response: SearchResponse) -> None:
    table = Table(title=f"{response.results_count} of {response.total_results} results")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("ID", style="bold")
    table.add_column("Fields")
    table.add_column("Snippet", style="green")
    for position, result in enumerate(response.results, start=1):
        fields = ", ".join(f"{name}={value}" for name, value in result.fields.items())
        table.add_row(str(position), result.id, fields, result.snippet)
    console.print(table)

    for name, buckets in response.facets.items():
        facet_table = Table(title=f"Facet: {name}")
        facet_table.add_column("Value")
        facet_table.add_column("Count", justify="right")
        for bucket in buckets:
            facet_table.add_row(bucket.value, str(bucket.count))
        console.print(facet_table)
    console.print(f"[dim]elapsed {response.elapsed_ms}ms[/]")


@app.command()
def search(
    query: Annotated[str, Argument(help="Free-text query.")],
    strategy: Annotated[
        Optional[str],
        Option("--strategy", "-s", help="keyword, semantic, keyword_semantic_boost or semantic_keyword_boost."),
    ] = None,
    rows: Annotated[Optional[int], Option("--rows", "-n", help="Page size.")] = None,
    start: Annotated[int, Option("--start", help="Offset of the first result.")] = 0,
    filters: Annotated[Optional[list[str]], Option("--filter", "-f", help="Filter query; repeatable.")] = None,
    facets: Annotated[Optional[list[str]], Option("--facet", help="Field to facet on; repeatable.")] = None,
    vector_fields: Annotated[
        Optional[list[str]], Option("--vector-field", help="Vector field to search; repeatable.")
    ] = None,
    sort: Annotated[Optional[str], Option("--sort", help='Sort such as "score desc".')] = None,
    as_json: Annotated[bool, Option("--json", help="Print the raw JSON response.")] = False,
    config: ConfigOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Run one search and print the results."""
    configure_logging(log_level)
    console = Console()
    try:
        request = _build_request(query, strategy, rows, start, filters, facets, vector_fields, sort)
        with build_service(config) as service:
            response = service.search(request)
    except SearchGatewayError as exc:
        console.print(f"[bold red]Search failed:[/] {exc}")
        raise Exit(code=1)
    except ValueError as exc:
        console.print(f"[bold red]Invalid request:[/] {exc}")
        raise Exit(code=2)

    if as_json:
        console.print_json(response.model_dump_json())
    else:
        _print_response(console, response)


@app.command()
def translate(
    query: Annotated[str, Argument(help="Free-text query.")],
    strategy: Annotated[Optional[str], Option("--strategy", "-s", help="Search strategy.")] = None,
    rows: Annotated[Optional[int], Option("--rows", "-n", help="Page size.")] = None,
    facets: Annotated[Optional[list[str]], Option("--facet", help="Field to facet on; repeatable.")] = None,
    config: ConfigOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Print the backend parameters a query translates to, without running it."""
    configure_logging(log_level)
    console = Console()
    try:
        request = _build_request(query, strategy, rows, 0, None, facets, None, None)
        with build_service(config) as service:
            translated = service.translate(request)
    except SearchGatewayError as exc:
        console.print(f"[bold red]Translation failed:[/] {exc}")
        raise Exit(code=1)
    except ValueError as exc:
        console.print(f"[bold red]Invalid request:[/] {exc}")
        raise Exit(code=2)
    console.print_json(json.dumps(translated.params))


@app.command()
def serve(
    host: Annotated[str, Option("--host", help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, Option("--port", "-p", help="Port to listen on.")] = 8000,
    config: ConfigOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Run the HTTP server."""
    run_server(config, host=host, port=port, log_level=log_level)
