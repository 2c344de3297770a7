"""CLI entry point for api-discovery."""

import json
import logging
from pathlib import Path

import click
import yaml

from api_discovery.errors import DiscoveryError
from api_discovery.service import Service, ServiceParameters, load_service


def _load(doc_path: Path, server_url: str, base_path: str | None, discovery_version: str) -> Service:
    """Load a discovery document file into a Service."""
    params = ServiceParameters(server_url=server_url, base_path=base_path)
    version = None if discovery_version == "auto" else discovery_version
    return load_service(doc_path.read_text(encoding="utf-8"), params, discovery_version=version)


def _describe(service: Service) -> dict:
    return {
        "name": service.name,
        "version": service.version,
        "discovery_version": service.discovery_version.value,
        "id": service.id,
        "title": service.title,
        "description": service.description,
        "documentation_link": service.documentation_link,
        "base_uri": service.base_uri,
        "labels": list(service.labels),
        "features": list(service.features),
        "resources": {name: r.summary() for name, r in sorted(service.resources.items())},
        "schemas": sorted(service.schemas),
    }


def _dump(data: dict, fmt: str) -> str:
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--server-url", envvar="DISCOVERY_SERVER_URL", default="https://localhost/", show_default=True, help="Server URL the base path is appended to.")
@click.option("--base-path", envvar="DISCOVERY_BASE_PATH", default=None, help="Override the document's base path.")
@click.option("--discovery-version", default="auto", type=click.Choice(["auto", "0.3", "1.0"]), help="Discovery document generation.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, server_url: str, base_path: str | None, discovery_version: str):
    """Inspect API discovery documents."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    ctx.obj = {
        "server_url": server_url,
        "base_path": base_path,
        "discovery_version": discovery_version,
    }


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", default="yaml", type=click.Choice(["yaml", "json"]), help="Output format.")
@click.pass_obj
def inspect(obj: dict, doc_path: Path, fmt: str):
    """Show service metadata, resources and schemas."""
    try:
        service = _load(doc_path, **obj)
        click.echo(_dump(_describe(service), fmt))
    except DiscoveryError as e:
        raise click.ClickException(str(e))


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.argument("resource")
@click.argument("method_name")
@click.option("--format", "fmt", default="yaml", type=click.Choice(["yaml", "json"]), help="Output format.")
@click.pass_obj
def method(obj: dict, doc_path: Path, resource: str, method_name: str, fmt: str):
    """Show one method, addressed by dotted resource path and name."""
    try:
        service = _load(doc_path, **obj)
        found = service.resolve_method(resource, method_name)
    except DiscoveryError as e:
        raise click.ClickException(str(e))

    data = found.model_dump(mode="json")
    data["uri"] = service.base_uri + found.path
    click.echo(_dump(data, fmt))


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.pass_obj
def schemas(obj: dict, doc_path: Path):
    """Resolve all schemas and list the schemas each one references."""
    try:
        service = _load(doc_path, **obj)
        resolved = service.schemas
    except DiscoveryError as e:
        raise click.ClickException(str(e))

    for name, schema in sorted(resolved.items()):
        refs = ", ".join(sorted(schema.references)) or "-"
        click.echo(f"{name}: {refs}")
    click.echo(f"Resolved {len(resolved)} schemas.")
