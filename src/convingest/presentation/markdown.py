"""
Markdown rendering of a normalized conversation.

Output layout:
- YAML front matter (id, title, timestamps, message count, project markers,
  meeting tags from message metadata)
- ``# title``
- one ``## role`` section per message, separated by ``---``
"""

from __future__ import annotations

from typing import Dict, List

from convingest.conversation import Conversation, MessageRole, format_timestamp
from convingest.conversation.artifacts import iter_artifact_blocks

ROLE_LABELS: Dict[MessageRole, str] = {
    MessageRole.USER: "👤 User",
    MessageRole.ASSISTANT: "🤖 Assistant",
    MessageRole.SYSTEM: "⚙️  System",
    MessageRole.TOOL: "🔧 Tool",
    MessageRole.OTHER: "Other",
}


def _front_matter(conv: Conversation) -> List[str]:
    meta = conv.meta
    lines = ["---", f"id: {meta.conv_id}"]
    if meta.title is not None:
        escaped = meta.title.replace('"', '\\"')
        lines.append(f'title: "{escaped}"')
    lines.append(f"created: {format_timestamp(meta.created_at)}")
    if meta.updated_at is not None:
        lines.append(f"updated: {format_timestamp(meta.updated_at)}")
    lines.append(f"messages: {len(conv.messages)}")

    projects = [m for m in meta.markers if m.startswith("project::")]
    if projects:
        lines.append("projects:")
        lines.extend(f"  - {p}" for p in projects)

    meetings = sorted({m.meeting for m in conv.messages if m.meeting is not None})
    if meetings:
        lines.append("meetings:")
        lines.extend(f"  - {m}" for m in meetings)

    lines.append("---")
    return lines


def render_markdown(conv: Conversation) -> str:
    parts = ["\n".join(_front_matter(conv)) + "\n\n"]
    title = conv.meta.title if conv.meta.title is not None else "Conversation"
    parts.append(f"# {title}\n\n")

    for message in conv.messages:
        parts.append(f"## {ROLE_LABELS[message.role]}\n\n")
        parts.append(f"*{message.timestamp.strftime('%Y-%m-%d %H:%M:%S')}*\n\n")
        if message.content:
            parts.append(message.content + "\n\n")
        for _, payload in iter_artifact_blocks(message):
            title = payload.get("title")
            if isinstance(title, str):
                parts.append(f"📎 **Artifact**: {title}\n\n")
        parts.append("---\n\n")

    return "".join(parts)
