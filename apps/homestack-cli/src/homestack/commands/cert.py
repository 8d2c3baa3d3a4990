"""SSL certificate management commands."""

from __future__ import annotations

import os
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from homestack_common import PLACEHOLDER_DOMAIN

from homestack.audit import audit
from homestack.config import get_config
from homestack.console import error, info, warn
from homestack.errors import PrivilegeRequiredError
from homestack.services import certbot, nginx
from homestack.services.certbot import MENU, Strategy

app = typer.Typer(no_args_is_help=True)
console = Console()


def _choose_strategy() -> Strategy:
    console.print("\nChoose certificate generation method:")
    for i, strategy in enumerate(MENU, start=1):
        console.print(f"{i}) {strategy.description}")
    choice = typer.prompt("\nEnter your choice (1-3)", default="", show_default=False)
    if choice.strip() not in {str(i) for i in range(1, len(MENU) + 1)}:
        error("Invalid choice. Exiting.")
        raise typer.Exit(1)
    return MENU[int(choice) - 1]


@app.command()
def issue(
    domain: Optional[str] = typer.Argument(None, help="Domain (defaults to DOMAIN)"),
    email: Optional[str] = typer.Argument(None, help="Contact email (defaults to ADMIN_EMAIL)"),
    staging: str = typer.Argument("false", help="'true' to use the Let's Encrypt staging environment"),
    method: Optional[Strategy] = typer.Option(None, "--method", help="Skip the menu and use this challenge"),
) -> None:
    """Issue a certificate for DOMAIN and *.DOMAIN, then schedule renewal."""
    cfg = get_config()
    domain = domain or cfg.domain
    email = email or cfg.admin_email
    use_staging = staging.lower() == "true"

    if domain == PLACEHOLDER_DOMAIN:
        error("Please provide your domain name as the first argument")
        console.print("Usage: homestack cert issue <domain> [email] [staging]")
        console.print("Example: homestack cert issue example.com user@example.com false")
        raise typer.Exit(1)
    if os.geteuid() != 0:
        raise PrivilegeRequiredError("cert issue must be run as root (use sudo)")

    with audit("cert.issue", target=domain, staging=use_staging) as event:
        info(f"Starting SSL certificate generation for domain: {domain}")
        if certbot.remove_existing(cfg, domain):
            warn(f"Found existing certificates for {domain} - removed them")

        if certbot.ensure_installed():
            info("Installed certbot")
        for path in cfg.certbot_dirs:
            path.mkdir(parents=True, exist_ok=True)
        if use_staging:
            warn("Using Let's Encrypt staging environment (certificates will not be trusted)")

        strategy = method or _choose_strategy()
        event.params["method"] = strategy.value
        if not strategy.wildcard:
            warn("This method cannot generate wildcard certificates")

        live = certbot.issue_cert(cfg, strategy, domain, email, staging=use_staging)
        info("Certificate generated successfully!")
        info(f"Certificate files are located in: {live}/")
        info("- Certificate: fullchain.pem")
        info("- Private key: privkey.pem")

        info("Setting up automatic certificate renewal...")
        certbot.write_renew_script(cfg)
        certbot.install_cron(cfg)
        info("Automatic renewal configured (runs twice daily)")
        info(f"Renewal logs will be saved to: {cfg.renew_log}")

        info("Certificate information:")
        certbot.show_certificates(cfg)
        info("SSL certificate setup complete!")


@app.command()
def renew() -> None:
    """Renew all expiring certificates and reload nginx."""
    cfg = get_config()

    with audit("cert.renew"):
        output = certbot.renew(cfg)
        console.print(output)

        console.print("\nReloading NGINX...")
        nginx.reload(cfg.nginx_compose)
        console.print("[green]Done.[/green]")


@app.command()
def status() -> None:
    """Show certificate status for all domains."""
    cfg = get_config()

    table = Table(title="SSL Certificates")
    table.add_column("Domain", style="cyan")
    table.add_column("Expires", style="yellow")
    table.add_column("Status")

    for cert in certbot.list_certs(cfg):
        table.add_row(cert["domain"], cert["expiry"], cert["status"])

    console.print(table)


@app.command(name="install-cron")
def install_cron() -> None:
    """Install the twice-daily renewal cron job."""
    cfg = get_config()

    with audit("cert.install-cron"):
        certbot.write_renew_script(cfg)
        if certbot.install_cron(cfg):
            console.print("Cron job already installed, updated.")
        console.print("[green]Certificate renewal cron installed (00:00 and 12:00).[/green]")
