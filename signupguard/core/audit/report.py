#!/usr/bin/env python3
"""
SignupGuard Core Audit — Session Report
=========================================
Markdown summary of one signup session for the person who ran it:
- Network, state, start time and duration
- Permission decisions (granted/denied)
- Names of auto-filled fields (never values)
- Whether the human submitted the form

Import from: signupguard.core.audit.report
"""

from datetime import datetime
from typing import Optional

from signupguard.core.types import Session

__all__ = ['format_duration', 'generate_session_report']


def format_duration(seconds: float) -> str:
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    elif minutes:
        return f"{minutes}m {secs}s"
    else:
        return f"{secs}s"


def generate_session_report(session: Optional[Session], session_id: str = "") -> str:
    """Render a session as Markdown. A missing session yields a stub report."""
    if session is None:
        return "# \U0001f4cb Signup Session Report\n\n*No signup session has run yet.*"

    started = datetime.fromtimestamp(session.started_at)
    lines = [
        "# \U0001f4cb Signup Session Report\n",
        f"**Network:** `{session.network_id}`",
    ]
    if session_id:
        lines.append(f"**Session ID:** `{session_id[:8]}`")
    lines += [
        f"**State:** {session.state.value}",
        f"**Started:** {started.strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Duration:** {format_duration(session.duration_seconds)}",
        f"**Approvals:** ✅ {session.approvals_granted} granted · "
        f"❌ {session.approvals_denied} denied",
        f"**Submitted by human:** {'yes' if session.human_submitted else 'no'}\n",
    ]

    lines.append(f"## \U0001f6e1️ Permission Decisions ({len(session.permissions)})\n")
    if session.permissions:
        lines.append("| Time | Action | Decision |")
        lines.append("|------|--------|----------|")
        for p in session.permissions:
            time_str = datetime.fromtimestamp(p.timestamp).strftime('%H:%M:%S')
            decision = '✅ granted' if p.approved else '❌ denied'
            lines.append(f"| {time_str} | {p.action} | {decision} |")
    else:
        lines.append("*No permissions requested*")
    lines.append("")

    lines.append(f"## \U0001f4dd Fields Pre-filled ({len(session.fields_completed)})\n")
    if session.fields_completed:
        for name in sorted(session.fields_completed):
            lines.append(f"- `{name}`")
    else:
        lines.append("*No fields pre-filled*")
    lines.append("")

    lines.append("---")
    lines.append("*The final submission is always made by you, never by the assistant.*")
    return "\n".join(lines)
