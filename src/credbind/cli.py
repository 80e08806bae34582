"""
credbind CLI

Commands for inspecting binding material and configuration:
- cert show: Generate a binding certificate and describe it
- cert payload: Print the credential endpoint payload
- config validate: Check a configuration file for a usable credential
"""

import json
import sys
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.table import Table

from credbind.application import ConfidentialClientApplication
from credbind.binding import BindingContext, CredentialBindingService, SoftwareKeyContainer
from credbind.binding.certificate import BindingCertificate
from credbind.config import DEFAULT_BINDING_KEY_NAME, ApplicationConfig, load_config
from credbind.context import RequestContext, ServiceBundle
from credbind.exceptions import CredbindError

console = Console()


def _generate_certificate(platform_key: Optional[str]) -> BindingCertificate:
    """Generate a binding certificate in a fresh, isolated context."""
    config = ApplicationConfig(
        client_id="credbind-cli",
        binding_key_name=platform_key or DEFAULT_BINDING_KEY_NAME,
    )
    bundle = ServiceBundle(
        config,
        key_container=SoftwareKeyContainer() if platform_key else None,
        binding_context=BindingContext(),
    )
    service = CredentialBindingService.get_credential_info(RequestContext(bundle))
    return service.binding_certificate


def _describe(certificate: BindingCertificate) -> dict:
    return {
        "subject": certificate.subject_name,
        "kind": certificate.key_kind.value,
        "thumbprint": certificate.thumbprint,
        "not_before": certificate.not_before.isoformat(),
        "not_after": certificate.not_after.isoformat(),
        "exportable_private_key": certificate.has_exportable_private_key,
    }


@click.group()
def cli():
    """credbind - credential binding and confidential client tooling."""


@cli.group()
def cert():
    """Inspect the binding certificate."""


@cert.command("show")
@click.option("--platform-key", default=None, help="Use a platform EC key with this name.")
@click.option("--json", "json_flag", is_flag=True, help="Output as JSON.")
def show(platform_key: Optional[str], json_flag: bool):
    """Generate a binding certificate and describe it."""
    try:
        certificate = _generate_certificate(platform_key)
    except CredbindError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    details = _describe(certificate)
    if json_flag:
        click.echo(json.dumps(details, indent=2))
        return

    table = Table(box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for name, value in details.items():
        table.add_row(name, str(value))
    console.print("\n[bold blue]Binding Certificate[/bold blue]\n")
    console.print(table)


@cert.command("payload")
@click.option("--platform-key", default=None, help="Use a platform EC key with this name.")
def payload(platform_key: Optional[str]):
    """Print the credential endpoint payload for a fresh binding certificate."""
    try:
        certificate = _generate_certificate(platform_key)
    except CredbindError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(CredentialBindingService.create_credential_payload(certificate))


@cli.group("config")
def config_group():
    """Inspect application configuration."""


@config_group.command("validate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
def validate(path: str):
    """Check that PATH configures a usable confidential client."""
    try:
        app = ConfidentialClientApplication(load_config(path))
        app.acquire_token_for_client([".default"]).validate()
    except CredbindError as e:
        click.echo(f"Invalid: {e}", err=True)
        sys.exit(1)
    console.print(f"[green]OK[/green] client_id={app.config.client_id} authority={app.config.authority}")


def main():
    cli()


if __name__ == "__main__":
    main()
