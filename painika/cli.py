"""Interactive chat CLI for the Painika server."""

import json
import os
import sys
from typing import Any

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

DEFAULT_BASE_URL = "http://localhost:3000"


def parse_sse_line(line: str) -> dict[str, Any] | None:
    """Decode one event-stream line; anything but a JSON ``data:`` line yields None."""
    if not line.startswith("data:"):
        return None
    try:
        event = json.loads(line[len("data:") :].strip())
    except json.JSONDecodeError:
        return None
    return event if isinstance(event, dict) else None


class ChatCLI:
    """Interactive chat interface that streams replies from the server."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, token: str | None = None):
        """Initialize chat CLI."""
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session_id: str | None = None
        self.console = Console()
        self.client = httpx.Client(timeout=None)

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]Painika - Interactive Chat[/bold blue]\n"
                "Type your messages to chat with the coding assistant.\n"
                "Commands: /help, /clear, /tokens, /tools, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]Cannot connect to the service at {self.base_url}.[/red]")
            return

        if not self._create_session():
            return

        self.console.print("[green]Connected, session ready[/green]\n")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
                command = user_input.strip().lower()

                if command in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif command == "/help":
                    self._show_help()
                elif command == "/clear":
                    self._clear()
                elif command == "/tokens":
                    self._show_tokens()
                elif command == "/tools":
                    self._show_tools()
                elif command:
                    self._stream_message(user_input)

        except (KeyboardInterrupt, EOFError):
            pass
        finally:
            self._delete_session()
            self.console.print("\n[yellow]Goodbye![/yellow]")
            self.client.close()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(self._url("/health"))
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _create_session(self) -> bool:
        payload: dict[str, Any] = {"groq": {"token": self.token} if self.token else {}}
        response = self.client.post(self._url("/sessions"), json=payload)
        if response.status_code != 200:
            self.console.print(f"[red]Failed to create session: {response.status_code} - {response.text}[/red]")
            return False

        self.session_id = response.json()["session_id"]
        return True

    def _delete_session(self) -> None:
        if not self.session_id:
            return
        try:
            self.client.delete(self._url(f"/sessions/{self.session_id}"))
        except httpx.HTTPError:
            pass

    def _stream_message(self, message: str) -> None:
        """Send a message and print the reply as it streams in."""
        self.console.print("\n[bold green]Assistant[/bold green]")
        reply: list[str] = []

        try:
            with self.client.stream(
                "POST", self._url(f"/sessions/{self.session_id}/stream"), json={"message": message}
            ) as response:
                if response.status_code != 200:
                    response.read()
                    self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")
                    return

                for line in response.iter_lines():
                    event = parse_sse_line(line)
                    if event is None:
                        continue
                    if event.get("type") == "chunk":
                        reply.append(event.get("content", ""))
                        self.console.print(event.get("content", ""), end="", markup=False, highlight=False)
                    elif event.get("type") == "error":
                        self.console.print(f"\n[red]Error: {event.get('error')}[/red]")
                        return

        except httpx.HTTPError as e:
            self.console.print(f"\n[red]Connection error: {e}[/red]")
            return

        self.console.print()
        if reply:
            self.console.print(Panel(Markdown("".join(reply)), border_style="green", padding=(0, 1)))

    def _clear(self) -> None:
        response = self.client.post(self._url(f"/sessions/{self.session_id}/clear"))
        if response.status_code == 200:
            self.console.print("[yellow]Conversation cleared[/yellow]")

    def _show_tokens(self) -> None:
        usage = self.client.get(self._url(f"/sessions/{self.session_id}/usage")).json()
        self.console.print(
            f"[dim]Tokens - input: {usage['input']}, output: {usage['output']}, total: {usage['total']}[/dim]"
        )

    def _show_tools(self) -> None:
        tools = self.client.get(self._url(f"/sessions/{self.session_id}/tools")).json()["tools"]
        self.console.print("\n".join(f"• {name}" for name in tools))

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /clear - Start a fresh conversation
• /tokens - Show token usage for this session
• /tools - List the assistant's tools
• /quit or /exit - Exit the chat

[bold]Note:[/bold] streamed replies do not run tools and report no token usage.
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main() -> None:
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("PAINIKA_URL", DEFAULT_BASE_URL)

    chat = ChatCLI(base_url, token=os.getenv("GROQ_API_KEY"))
    chat.start()


if __name__ == "__main__":
    main()
