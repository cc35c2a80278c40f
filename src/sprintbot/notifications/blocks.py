"""Slack Block Kit rendering for sprint reports."""

from __future__ import annotations

from typing import Any

from sprintbot.sprint.report import (
    ActionSection,
    HeaderSection,
    HistorySection,
    LinkSection,
    ReportSection,
    SprintReport,
    TextSection,
    TicketGroupSection,
    format_date,
    format_percentage,
)
from sprintbot.tickets.models import Ticket, TicketLabel

# Slack rejects section text longer than this
MAX_SECTION_TEXT = 3000
MAX_HEADER_TEXT = 150


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text[:MAX_SECTION_TEXT]}}


def _divider() -> dict[str, Any]:
    return {"type": "divider"}


def render_ticket(ticket: Ticket, struck: bool = False) -> str:
    """Render one ticket as mrkdwn lines.

    Args:
        ticket: Reconciled ticket.
        struck: Strike the name through (used for deferred tickets).
    """
    name = _escape(ticket.name)
    if struck:
        name = f"~{name}~"
    prefix = "".join(label.emoji for label in TicketLabel if label in ticket.labels)
    if ticket.is_new:
        prefix = f"🆕 {prefix}"
    if ticket.sprint_age > 0:
        prefix = f"{'🐌' * ticket.sprint_age} {prefix}"
    lines = [f"{prefix.strip()} *<{ticket.url}|{name}>*".strip()]

    if ticket.warnings:
        lines.append("⚠️ | " + " | ".join(f"*{warning}*" for warning in ticket.warnings))

    if ticket.checklist_progress:
        lines.append(ticket.checklist_progress)

    pr = ticket.pull_request
    if pr is not None:
        link_text = "🚧 View Draft PR" if pr.is_draft else "View PR"
        pr_line = f"<{pr.url}|{link_text}>"
        if pr.comment_count > 0:
            pr_line += f" | {pr.comment_count} 💬"
        if pr.failing_checks:
            checks = " ".join(f"<{check.details_url}|`{check.name}`>" for check in pr.failing_checks)
            pr_line += f" | Failing check runs: {checks}"
        lines.append(pr_line)

    if ticket.source.dependency_link is not None:
        link = ticket.source.dependency_link
        lines.append(f"Depends on <{link.url}|{_escape(link.name)}>")

    if ticket.member_names:
        lines.append(" ".join(f"<@{member}>" for member in ticket.member_names))

    return "\n".join(lines)


def _ticket_group_blocks(section: TicketGroupSection) -> list[dict[str, Any]]:
    blocks = [_divider(), _section(f"*{section.title}*")]
    struck = section.key == "deferred"
    chunk = ""
    for ticket in section.tickets:
        entry = render_ticket(ticket, struck=struck)[:MAX_SECTION_TEXT]
        if chunk and len(chunk) + len(entry) + 2 > MAX_SECTION_TEXT:
            blocks.append(_section(chunk))
            chunk = ""
        chunk = f"{chunk}\n\n{entry}" if chunk else entry
    if chunk:
        blocks.append(_section(chunk))
    return blocks


def _history_text(section: HistorySection) -> str:
    lines = ["*Previous Sprints:*"]
    for record in section.records:
        lines.append(
            f"{format_date(record.start_date)} - {format_date(record.end_date)}: "
            f"*{record.completed_count} tickets | {format_percentage(record.percent_complete)}*"
        )
    return "\n".join(lines)


def render_section(section: ReportSection) -> list[dict[str, Any]]:
    """Render one report section as Slack blocks."""
    match section:
        case HeaderSection(text=text):
            return [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": text[:MAX_HEADER_TEXT], "emoji": True},
                }
            ]
        case TextSection(text=text):
            return [_section(text)]
        case TicketGroupSection():
            return _ticket_group_blocks(section)
        case HistorySection():
            return [_divider(), _section(_history_text(section))]
        case LinkSection(text=text, url=url):
            return [{"type": "context", "elements": [{"type": "mrkdwn", "text": f"<{url}|{text}>"}]}]
        case ActionSection(label=label, action_id=action_id, value=value):
            return [
                {
                    "type": "actions",
                    "elements": [
                        {
                            "type": "button",
                            "text": {"type": "plain_text", "text": label, "emoji": True},
                            "style": "primary",
                            "action_id": action_id,
                            "value": value,
                        }
                    ],
                }
            ]
        case _:
            raise TypeError(f"Unknown report section {section!r}")


def render_blocks(report: SprintReport) -> list[dict[str, Any]]:
    """Render a whole report as a list of Slack blocks."""
    blocks: list[dict[str, Any]] = []
    for section in report.sections:
        blocks.extend(render_section(section))
    return blocks
