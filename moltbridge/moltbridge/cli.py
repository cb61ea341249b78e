from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from moltbridge.audit.ledger import AuditLedger
from moltbridge.audit.render import render_markdown_report
from moltbridge.bridge.client import build_url, call_trade_bridge
from moltbridge.bridge.gate import is_bridge_configured, is_trading_enabled
from moltbridge.bridge.model import ALLOWED_METHODS, TradeBridgeRequest
from moltbridge.bridge.signing import canonical_message, sign_request
from moltbridge.config.load import ConfigError, load_config
from moltbridge.config.model import BridgeConfig

app = typer.Typer(help="Moltbridge trade bridge CLI")
audit_app = typer.Typer(help="Audit commands")
app.add_typer(audit_app, name="audit")
console = Console()


def _load(config_path: str) -> BridgeConfig:
    try:
        return load_config(config_path or None)
    except ConfigError as exc:
        console.print(f"[red]FAIL[/red] invalid config: {exc}")
        raise typer.Exit(2)


def _parse_body(body: str) -> Any:
    if not body:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--body must be JSON: {exc}")


def _check_method(method: str) -> str:
    upper = method.upper()
    if upper not in ALLOWED_METHODS:
        raise typer.BadParameter(f"method must be one of {', '.join(sorted(ALLOWED_METHODS))}")
    return upper


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("status")
def status(config: str = typer.Option("", "--config", help="Path to config YAML")) -> None:
    loaded = _load(config)
    console.print_json(
        data={
            "trading_enabled": is_trading_enabled(loaded),
            "bridge_configured": is_bridge_configured(loaded),
            "config": loaded.summary(),
        }
    )


@app.command("sign")
def sign(
    config: str = typer.Option("", "--config", help="Path to config YAML"),
    method: str = typer.Option("POST", "--method"),
    path: str = typer.Option(..., "--path"),
    body: str = typer.Option("", "--body", help="JSON request body"),
    timestamp: str = typer.Option("", "--timestamp", help="Unix seconds; defaults to now"),
    nonce: str = typer.Option("", "--nonce", help="Defaults to a fresh UUID4"),
) -> None:
    loaded = _load(config)
    if not loaded.hmac_secret:
        console.print("[red]FAIL[/red] TRADE_BRIDGE_HMAC_SECRET is not set")
        raise typer.Exit(2)

    request = TradeBridgeRequest(method=_check_method(method), path=path, body=_parse_body(body))
    envelope = sign_request(loaded.hmac_secret, request, timestamp=timestamp or None, nonce=nonce or None)
    console.print_json(
        data={
            "url": build_url(loaded.bridge_url, path) if loaded.bridge_url else None,
            "canonical": canonical_message(
                envelope.timestamp, envelope.nonce, envelope.method, envelope.path, envelope.body_json
            ),
            "headers": envelope.headers(),
        }
    )


@app.command("send")
def send(
    config: str = typer.Option("", "--config", help="Path to config YAML"),
    method: str = typer.Option("POST", "--method"),
    path: str = typer.Option(..., "--path"),
    body: str = typer.Option("", "--body", help="JSON request body"),
    audit_dir: str = typer.Option("audit", "--audit-dir"),
) -> None:
    loaded = _load(config)
    request = TradeBridgeRequest(method=_check_method(method), path=path, body=_parse_body(body))
    result = call_trade_bridge(loaded, request, ledger=AuditLedger(audit_dir))

    if not result.ok:
        console.print(f"[red]BLOCK[/red] {result.status} {result.error}")
        if result.data is not None:
            console.print_json(data=result.data)
        raise typer.Exit(2)

    console.print(f"[green]OK[/green] {result.status}")
    console.print_json(data=result.to_dict())


@audit_app.command("tail")
def audit_tail(
    lines: int = typer.Option(20, "--lines"),
    audit_dir: str = typer.Option("audit", "--audit-dir"),
) -> None:
    ledger = AuditLedger(audit_dir)
    for event in ledger.tail(lines):
        console.print_json(data=event)


@audit_app.command("report")
def audit_report(
    format: str = typer.Option("md", "--format"),
    output: str = typer.Option("audit/report.md", "--output"),
    audit_dir: str = typer.Option("audit", "--audit-dir"),
) -> None:
    if format != "md":
        raise typer.BadParameter("Only md format is supported")
    report = render_markdown_report(AuditLedger(audit_dir))
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(report, encoding="utf-8")
    console.print(f"wrote {output_path}")


if __name__ == "__main__":
    app()
