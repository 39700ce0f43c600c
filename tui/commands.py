"""
Parsing and rendering for the terminal chat's built-in commands.
"""

from dataclasses import dataclass
from typing import List, Optional

from src.core.approval import CommandRejection, CommandResult, PendingCommand


@dataclass(frozen=True)
class ChatCommand:
    kind: str  # "query", "help", "exit", "pending", "clear", "approve", "reject", "empty"
    argument: Optional[str] = None


HELP_TEXT = "\n".join([
    "📖 Available Commands:",
    "help          - Show this help message",
    "exit          - Exit the application",
    "clear         - Clear the screen",
    "pending       - Show pending bash commands",
    "approve <id>  - Approve a bash command",
    "reject <id>   - Reject a bash command",
    "",
    "💡 Example Questions:",
    "• \"How many artists are in the database?\"",
    "• \"Who wrote The Wealth of Nations?\"",
    "• \"What time is it?\"",
    "• \"Show me the albums\"",
    "• \"What is creative destruction in economics?\"",
])


def parse_chat_input(text: str) -> ChatCommand:
    """Classify a line typed by the user."""
    stripped = text.strip()
    lowered = stripped.lower()

    if not stripped:
        return ChatCommand("empty")
    if lowered in ("exit", "help", "pending", "clear"):
        return ChatCommand(lowered)
    if stripped.startswith("approve "):
        return ChatCommand("approve", stripped[len("approve "):].strip())
    if stripped.startswith("reject "):
        return ChatCommand("reject", stripped[len("reject "):].strip())
    return ChatCommand("query", stripped)


def format_pending(pending: List[PendingCommand]) -> str:
    if not pending:
        return "✅ No pending commands"

    lines = ["🔒 Pending Commands:"]
    for entry in pending:
        lines.extend([
            "",
            f"ID: {entry.id}",
            f"Command: {entry.command}",
            f"Description: {entry.description}",
            f"Time: {entry.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
            f"To approve: approve {entry.id}",
            f"To reject: reject {entry.id}",
        ])
    return "\n".join(lines)


def format_command_result(result: CommandResult) -> str:
    if not result.success:
        return f"❌ Command failed:\n{result.error}"

    lines = ["✅ Command executed successfully:", f"Command: {result.command}"]
    if result.output:
        lines.append(f"📤 Output:\n{result.output}")
    if result.warnings:
        lines.append(f"⚠️  Warnings:\n{result.warnings}")
    return "\n".join(lines)


def format_rejection(rejection: CommandRejection) -> str:
    return f"✅ Command rejected: {rejection.command}"
