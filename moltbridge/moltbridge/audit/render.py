from __future__ import annotations

from collections import Counter

from .ledger import AuditLedger


def render_markdown_report(ledger: AuditLedger, limit: int = 500) -> str:
    events = ledger.tail(limit)
    if not events:
        return "# Trade Bridge Audit Report\n\nNo events found."

    decisions = Counter(event.get("decision", "UNKNOWN") for event in events)
    statuses = Counter(str(event.get("status", "-")) for event in events)
    paths = Counter(f"{event.get('method', '?')} {event.get('path', '?')}" for event in events)

    lines = [
        "# Trade Bridge Audit Report",
        "",
        "## Summary",
        f"- Events: {len(events)}",
        f"- ALLOW: {decisions.get('ALLOW', 0)}",
        f"- BLOCK: {decisions.get('BLOCK', 0)}",
        "",
        "## Status Codes",
    ]
    for status, count in sorted(statuses.items()):
        lines.append(f"- {status}: {count}")

    lines.append("")
    lines.append("## Endpoints")
    for endpoint, count in paths.most_common():
        lines.append(f"- {endpoint}: {count}")

    lines.append("")
    lines.append("## Recent Events")
    for event in events[-20:]:
        rid = event.get("request_id", "-")
        endpoint = f"{event.get('method', '?')} {event.get('path', '?')}"
        status = event.get("status", "-")
        decision = event.get("decision", "UNKNOWN")
        reason = event.get("reason", "")
        lines.append(f"- `{rid}` `{endpoint}` `{status}` `{decision}`: {reason}")

    return "\n".join(lines)
