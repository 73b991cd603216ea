import logging
from typing import Annotated, Optional

import typer
from dotenv import load_dotenv

# Load environment variables BEFORE importing local modules that use them
load_dotenv()

from .config.settings import Config, ConfigurationError
from .config_loader import load_export_options
from .domain.enums import ExportFormat
from .pipeline.hierarchy import find_community_by_name, preview_hierarchy, root_communities
from .pipeline.orchestrator import ExportOrchestrator, format_summary
from .pipeline.source import CatalogClient
from .types import CatalogError, CatalogNotFoundError
from .utils import setup_logging

app = typer.Typer(help="Collibra Community Export: communities -> domains -> assets to local files")


def _create_client() -> CatalogClient:
    """Load configuration from the environment and open an authenticated client."""
    return Config().create_client()


def _truncate(text: Optional[str], width: int) -> str:
    if not text:
        return "No description"
    text = " ".join(text.split())
    return text if len(text) <= width else text[:width - 3] + "..."


@app.command("list-communities")
def list_communities(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable detailed logging output")] = False,
):
    """
    List all communities in the Collibra instance.

    Examples:
        collibra-export list-communities
    """
    setup_logging(verbose, "list-communities")

    try:
        client = _create_client()
        communities = client.list_communities()
    except (ConfigurationError, CatalogError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    if not communities:
        typer.echo("No communities found in your Collibra instance.")
        return

    typer.echo(f"{'#':>4}  {'Community Name':<40}  Description")
    typer.echo("-" * 100)
    for i, community in enumerate(communities, start=1):
        marker = "" if community.parent_id is None else "  (sub)"
        typer.echo(f"{i:>4}  {_truncate(community.name + marker, 40):<40}  {_truncate(community.description, 50)}")

    typer.echo(f"\nTotal communities: {len(communities)}")


@app.command("preview")
def preview(
    name: Annotated[str, typer.Argument(help="Community name (exact match)")],
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable detailed logging output")] = False,
):
    """
    Show the sub-community tree an export of NAME would cover, without exporting.

    Examples:
        collibra-export preview "Finance"
    """
    setup_logging(verbose, "preview")

    try:
        client = _create_client()
        communities = client.list_communities()
        root = find_community_by_name(name, communities)
        if root is None:
            raise CatalogNotFoundError("community", name)
        scope = preview_hierarchy(root, communities)
    except CatalogNotFoundError as e:
        typer.echo(f"Nothing matched: {e}", err=True)
        raise typer.Exit(1)
    except (ConfigurationError, CatalogError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    for line in scope.lines():
        typer.echo(line)
    typer.echo(f"\n{len(scope.descendants)} sub-communities under '{root.name}'")


@app.command("export")
def export_command(
    names: Annotated[Optional[list[str]], typer.Argument(help="Community names to export (exact match)")] = None,
    all_communities: Annotated[bool, typer.Option("--all", help="Export every top-level community")] = False,
    domain: Annotated[Optional[str], typer.Option("--domain", "-d", help="Export a single domain by exact name")] = None,
    profile: Annotated[Optional[str], typer.Option("--profile", "-p", help="YAML export profile")] = None,
    include_assets: Annotated[Optional[bool], typer.Option("--assets/--no-assets", help="Include assets")] = None,
    include_attributes: Annotated[Optional[bool], typer.Option("--attributes/--no-attributes", help="Include asset attributes")] = None,
    include_relations: Annotated[Optional[bool], typer.Option("--relations/--no-relations", help="Include asset relations")] = None,
    include_responsibilities: Annotated[Optional[bool], typer.Option("--responsibilities/--no-responsibilities", help="Include asset responsibilities (stewards, owners, etc.)")] = None,
    output_dir: Annotated[Optional[str], typer.Option("--output-dir", "-o", help="Output directory")] = None,
    format: Annotated[Optional[ExportFormat], typer.Option("--format", "-f", help="Export format: json or csv")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable detailed logging output")] = False,
    log_to_file: Annotated[bool, typer.Option("--log-to-file", help="Create timestamped log files")] = False,
):
    """
    Export communities (with sub-communities, domains and assets) or a single domain.

    A single community aborts on the first error. Several communities are
    exported one after another; a failing community is reported in the
    summary and the remaining ones still run.

    Examples:
        collibra-export export "Finance"
        collibra-export export "Finance" "Marketing" --relations --format csv
        collibra-export export --all --no-assets
        collibra-export export --domain "Customer Glossary"
    """
    selected = [n for n in (names or []) if n.strip()]
    modes = sum([bool(selected), all_communities, domain is not None])
    if modes != 1:
        typer.echo("ERROR: give community names, --all, or --domain (exactly one)", err=True)
        raise typer.Exit(2)

    setup_logging(verbose, "export", log_to_file)

    try:
        options = load_export_options(
            profile,
            include_assets=include_assets,
            include_attributes=include_attributes,
            include_relations=include_relations,
            include_responsibilities=include_responsibilities,
            output_dir=output_dir,
            format=format,
        )
        client = _create_client()
    except (FileNotFoundError, ValueError, ConfigurationError, CatalogError) as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)

    orchestrator = ExportOrchestrator(client)
    logging.info(f"Export options: {options.to_dict()} -> {options.output_dir}")

    try:
        if domain is not None:
            target = client.domain_by_name(domain)
            _, location = orchestrator.export_domain(target, options)
            typer.echo(f"Exported to: {location}")
            return

        if all_communities:
            listing = client.list_communities()
            communities = root_communities(listing)
            if not communities:
                typer.echo("No communities found in your Collibra instance.")
                return
            results = orchestrator.run(communities, options, listing)
        else:
            results = orchestrator.export_by_name(selected, options)
    except CatalogNotFoundError as e:
        typer.echo(f"Nothing matched: {e}", err=True)
        raise typer.Exit(1)
    except Exception as e:
        logging.error(f"Export failed: {e}")
        if verbose:
            logging.exception("Full traceback")
        raise typer.Exit(1)

    if len(results) == 1:
        typer.echo(f"Exported to: {results[0].location}")
        return

    typer.echo("\nExport Summary:")
    for line in format_summary(results):
        typer.echo(line)

    if not all(r.succeeded for r in results):
        raise typer.Exit(1)


@app.command("version")
def version():
    """Display version information."""
    from . import __version__
    typer.echo(f"collibra-export version: {__version__}")


if __name__ == "__main__":
    app()
