"""CLI interface for smartmem."""

from __future__ import annotations

import os
import uuid
from typing import Any

from groq import AsyncGroq

from .agent import AgentConfig, AgentLoop, StopReason
from .config import ConfigError, load_config
from .events import EventBus
from .logging import configure_logger, get_logger
from .memory import ForgetTool, MemoryManager, RecallTool, StoreTool
from .tools import ToolRegistry

BANNER = """
smartmem v0.1.0: an assistant with long-term memory

Commands:
  /exit, /quit  - Exit the CLI
  /reset        - Start a new conversation (memories are kept)
  /count        - Show the number of stored memories
  /help         - Show this help

Type your message and press Enter.
"""


def build_registry(manager: MemoryManager) -> ToolRegistry:
    """Registry with the memory tools."""
    registry = ToolRegistry()
    registry.register(RecallTool(manager))
    registry.register(StoreTool(manager))
    registry.register(ForgetTool(manager))
    return registry


class CLI:
    """Interactive command-line interface."""

    def __init__(
        self,
        manager: MemoryManager,
        config: AgentConfig | None = None,
        groq_client: AsyncGroq | None = None,
        registry: ToolRegistry | None = None,
    ) -> None:
        self.manager = manager
        self.config = config or AgentConfig(
            model=os.getenv("GROQ_MODEL", "llama-3.1-70b-versatile")
        )
        self.registry = registry or build_registry(manager)
        self.bus = EventBus()
        manager.register(self.bus)
        self.agent = AgentLoop(self.registry, self.config, groq_client=groq_client, bus=self.bus)
        self.logger = get_logger()
        self.chat_id = self._new_chat_id()
        self._history: list[dict[str, Any]] = []

    def _new_chat_id(self) -> str:
        return f"cli-{uuid.uuid4().hex[:8]}"

    def _format_response(self, response: str, stop_reason: StopReason, turns: int) -> str:
        """Format the agent's response for display."""
        output = ["\n" + "-" * 40, response, "-" * 40]
        if stop_reason != StopReason.COMPLETE:
            output.append(f"Stopped: {stop_reason.value} (turns: {turns})")
        return "\n".join(output)

    async def _process_message(self, message: str) -> None:
        """Process a user message through the agent."""
        try:
            result = await self.agent.run(message, chat_id=self.chat_id, history=self._history)
        except Exception as e:
            print(f"\nError: {e}")
            self.logger.log("error", chat_id=self.chat_id, error=str(e))
            return

        self._history.append({"role": "user", "content": message})
        self._history.append({"role": "assistant", "content": result.response})

        print(self._format_response(result.response, result.stop_reason, result.turns))
        self.logger.log_agent_stop(result.stop_reason.value, chat_id=self.chat_id, turns=result.turns)

    async def _handle_command(self, command: str) -> bool:
        """Handle a special command. Returns True if should continue, False to exit."""
        cmd = command.lower().strip()

        if cmd in ("/exit", "/quit", "exit", "quit"):
            print("\nGoodbye!")
            self.logger.log("session_end", chat_id=self.chat_id)
            return False

        if cmd == "/reset":
            old_chat_id = self.chat_id
            self.chat_id = self._new_chat_id()
            self._history = []
            self.logger.log("session_reset", old_chat_id=old_chat_id, chat_id=self.chat_id)
            print(f"\nConversation reset. New chat_id: {self.chat_id}")
            return True

        if cmd == "/count":
            try:
                total = await self.manager.count()
            except Exception as e:
                print(f"\nError: {e}")
                return True
            print(f"\n{total} memories stored")
            return True

        if cmd == "/help":
            print(BANNER)
            return True

        print(f"Unknown command: {command}")
        return True

    async def run(self) -> None:
        """Run the interactive CLI."""
        print(BANNER)
        print(f"Session: {self.chat_id}\n")
        self.logger.set_chat_id(self.chat_id)
        self.logger.log("session_start", chat_id=self.chat_id)
        self.manager.start()

        try:
            while True:
                try:
                    user_input = input("you> ").strip()
                except (KeyboardInterrupt, EOFError):
                    print("\nGoodbye!")
                    break

                if not user_input:
                    continue

                if user_input.startswith("/") or user_input.lower() in ("exit", "quit"):
                    if not await self._handle_command(user_input):
                        break
                    continue

                await self._process_message(user_input)
        finally:
            await self.manager.stop()


async def run_cli() -> None:
    """Run the CLI with configuration from ~/.smartmem/config.json and the environment."""
    configure_logger()

    try:
        config = load_config()
    except ConfigError as e:
        print(f"Error: invalid configuration: {e}")
        return

    if not config.extraction.api_key:
        print("Error: GROQ_API_KEY environment variable not set")
        print("Please set it in your .env file or environment")
        return
    if not config.embedding.api_key:
        print("Error: OPENAI_API_KEY environment variable not set")
        print("Please set it in your .env file or environment")
        return

    manager = MemoryManager.from_config(config)
    cli = CLI(manager, groq_client=AsyncGroq(api_key=config.extraction.api_key))
    await cli.run()
