"""
Terminal chat for the multi-source agent.

Queries, approvals and rejections run in thread workers so a slow command or
LLM call never freezes the input box.
"""

import sys

from textual import work
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Header, Footer, Static, Input, RichLog

from src.agents.orchestrator import Orchestrator, build_orchestrator
from src.core.errors import NotFound
from util.logging import logger
from .commands import (
    HELP_TEXT,
    format_command_result,
    format_pending,
    format_rejection,
    parse_chat_input,
)

SEPARATOR = "-" * 60

BANNER = "\n".join([
    "🎵 Multi-Source AI Agent - Music & Economics Assistant",
    "📊 SQLite Database - Music data (artists, albums, tracks, sales)",
    "📚 Documents - Economics and book information",
    "🌐 External Data - System information (with approval)",
    'Type "help" for commands, "exit" to quit',
])


class ChatApp(App):
    """Chat interface with inline command approval."""

    CSS = """
    .title {
        text-align: center;
        text-style: bold;
        color: blue;
    }

    #transcript {
        height: 1fr;
        border: solid cyan;
        padding: 0 1;
    }

    #chat-input {
        dock: bottom;
    }
    """

    TITLE = "Multi-Source AI Agent"

    BINDINGS = [("ctrl+q", "quit", "Quit")]

    def __init__(self, orchestrator: Orchestrator):
        super().__init__()
        self.orchestrator = orchestrator

    def compose(self) -> ComposeResult:
        yield Header()
        yield Container(
            Static(BANNER, classes="title"),
            RichLog(id="transcript", wrap=True, markup=False),
        )
        yield Input(id="chat-input", placeholder="🤖 You: ask a question, or type help")
        yield Footer()

    def on_mount(self) -> None:
        logger.info("Terminal chat started")
        self.query_one("#chat-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.input.value = ""
        command = parse_chat_input(event.value)

        if command.kind == "empty":
            return
        if command.kind == "exit":
            self.exit(message="👋 Goodbye! Thanks for using the Multi-Source AI Agent!")
        elif command.kind == "help":
            self.post_transcript(HELP_TEXT)
        elif command.kind == "clear":
            self.query_one("#transcript", RichLog).clear()
        elif command.kind == "pending":
            self.post_transcript(format_pending(self.orchestrator.pending_commands()))
        elif command.kind == "approve":
            self.post_transcript(f"✅ Approving command: {command.argument}")
            self.approve(command.argument)
        elif command.kind == "reject":
            self.post_transcript(f"❌ Rejecting command: {command.argument}")
            self.reject(command.argument)
        else:
            self.post_transcript(f"🤖 You: {command.argument}\n🔄 Processing your request...")
            self.ask(command.argument)

    def post_transcript(self, text: str) -> None:
        transcript = self.query_one("#transcript", RichLog)
        transcript.write(text)
        transcript.write(SEPARATOR)

    @work(thread=True)
    def ask(self, query: str) -> None:
        response = self.orchestrator.process_query(query)
        approval = response.approval_request
        if approval:
            text = "\n".join([
                "🤖 Assistant:",
                "🔒 COMMAND REQUIRES USER APPROVAL",
                f"Command ID: {approval['commandId']}",
                f"Description: {approval['description']}",
                f"Command: {approval['command']}",
                f"To approve this command, use: approve {approval['commandId']}",
                f"To reject this command, use: reject {approval['commandId']}",
                "⚠️  Please review the command carefully before approving.",
            ])
        else:
            text = f"🤖 Assistant:\n{response.content}"
        self.call_from_thread(self.post_transcript, text)

    @work(thread=True)
    def approve(self, command_id: str) -> None:
        try:
            text = format_command_result(self.orchestrator.approve_command(command_id))
        except NotFound as e:
            text = f"❌ Error approving command: {e}"
        self.call_from_thread(self.post_transcript, f"🤖 Assistant:\n{text}")

    @work(thread=True)
    def reject(self, command_id: str) -> None:
        try:
            text = format_rejection(self.orchestrator.reject_command(command_id))
        except NotFound as e:
            text = f"❌ Error rejecting command: {e}"
        self.call_from_thread(self.post_transcript, f"🤖 Assistant:\n{text}")


def main():
    """Terminal chat entry point."""
    try:
        app = ChatApp(build_orchestrator())
        app.run()
    except KeyboardInterrupt:
        print("\n👋 Shutting down gracefully...")
        logger.info("Terminal chat exited via keyboard interrupt")
    except Exception as e:
        error_msg = f"Terminal chat startup failed: {e}"
        print(f"❌ {error_msg}")
        logger.error(error_msg)
        sys.exit(1)


if __name__ == "__main__":
    main()
