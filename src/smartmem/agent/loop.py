"""Agent loop implementation."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from groq import AsyncGroq

from ..events import BEFORE_TURN, TURN_END, BeforeTurnEvent, EventBus, TurnEndEvent
from ..logging import JSONLLogger, get_logger
from ..tools import ToolRegistry
from .prompt import build_system_prompt, format_tool_result


class StopReason(Enum):
    """Reasons for stopping the agent loop."""

    COMPLETE = "complete"
    MAX_TURNS = "max_turns"
    REPEATED_CALL = "repeated_call"
    CONSECUTIVE_ERRORS = "consecutive_errors"


@dataclass
class AgentConfig:
    """Configuration for the agent loop."""

    model: str = "llama-3.1-70b-versatile"
    max_turns: int = 10
    max_consecutive_errors: int = 3
    max_repeated_calls: int = 2


@dataclass
class AgentResult:
    """Result from running the agent loop."""

    response: str
    stop_reason: StopReason
    turns: int
    tool_calls: list[dict[str, Any]] = field(default_factory=list)


class AgentLoop:
    """Main agent loop: think, act, observe.

    Before each run the BEFORE_TURN event is emitted and handler output is
    added to the system prompt. After the run TURN_END carries the messages
    of the turn; success is True only when the model finished on its own.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        config: AgentConfig | None = None,
        groq_client: AsyncGroq | None = None,
        bus: EventBus | None = None,
        event_logger: JSONLLogger | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or AgentConfig()
        self.client = groq_client or AsyncGroq(api_key=os.getenv("GROQ_API_KEY"))
        self.bus = bus or EventBus()
        self.events = event_logger or get_logger()
        self._last_tool_call: str | None = None
        self._repeated_count: int = 0
        self._consecutive_errors: int = 0

    def _reset_state(self) -> None:
        """Reset loop state for a new run."""
        self._last_tool_call = None
        self._repeated_count = 0
        self._consecutive_errors = 0

    def _check_repeated_call(self, tool_call: dict[str, Any]) -> bool:
        """Check if this is a repeated tool call."""
        call_sig = json.dumps(tool_call, sort_keys=True)
        if call_sig == self._last_tool_call:
            self._repeated_count += 1
            return self._repeated_count >= self.config.max_repeated_calls
        self._last_tool_call = call_sig
        self._repeated_count = 1
        return False

    async def run(
        self,
        message: str,
        chat_id: str | None = None,
        history: list[dict[str, Any]] | None = None,
    ) -> AgentResult:
        """Run the agent loop for a user message.

        Args:
            message: The current user message.
            chat_id: Optional session identifier.
            history: Optional conversation history to inject between
                     system prompt and current message.

        Returns:
            AgentResult with response and metadata.
        """
        self._reset_state()

        context_blocks = await self.bus.emit(BEFORE_TURN, BeforeTurnEvent(prompt=message))

        messages: list[dict[str, Any]] = [
            {
                "role": "system",
                "content": build_system_prompt(
                    self.registry.get_tools_schema(),
                    [block for block in context_blocks if isinstance(block, str)],
                ),
            },
        ]

        if history:
            messages.extend(history)

        turn_start = len(messages)
        messages.append({"role": "user", "content": message})

        try:
            result = await self._loop(messages, chat_id)
        except Exception:
            await self.bus.emit(
                TURN_END, TurnEndEvent(messages=messages[turn_start:], success=False)
            )
            raise

        turn_messages = messages[turn_start:] + [{"role": "assistant", "content": result.response}]
        await self.bus.emit(
            TURN_END,
            TurnEndEvent(
                messages=turn_messages,
                success=result.stop_reason == StopReason.COMPLETE,
            ),
        )
        return result

    async def _loop(self, messages: list[dict[str, Any]], chat_id: str | None) -> AgentResult:
        tool_calls_log: list[dict[str, Any]] = []
        tools_schema = self.registry.get_tools_schema()

        for turn in range(self.config.max_turns):
            # Think
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=messages,
                tools=tools_schema or None,
                tool_choice="auto" if tools_schema else None,
            )

            assistant_message = response.choices[0].message

            if not assistant_message.tool_calls:
                return AgentResult(
                    response=assistant_message.content or "",
                    stop_reason=StopReason.COMPLETE,
                    turns=turn + 1,
                    tool_calls=tool_calls_log,
                )

            messages.append(assistant_message.model_dump())

            for tool_call in assistant_message.tool_calls:
                tool_name = tool_call.function.name
                try:
                    tool_args = json.loads(tool_call.function.arguments)
                except json.JSONDecodeError:
                    tool_args = {}

                call_record = {"name": tool_name, "args": tool_args}
                tool_calls_log.append(call_record)
                self.events.log_tool_call(tool_name, tool_args, chat_id=chat_id)

                if self._check_repeated_call(call_record):
                    return AgentResult(
                        response="Stopped: repeated tool call detected",
                        stop_reason=StopReason.REPEATED_CALL,
                        turns=turn + 1,
                        tool_calls=tool_calls_log,
                    )

                # Act
                result = await self.registry.dispatch(tool_name, tool_args)
                self.events.log_tool_result(
                    tool_name, result.success, chat_id=chat_id, error=result.error
                )

                if not result.success:
                    self._consecutive_errors += 1
                    if self._consecutive_errors >= self.config.max_consecutive_errors:
                        return AgentResult(
                            response=f"Stopped: {self.config.max_consecutive_errors} consecutive errors",
                            stop_reason=StopReason.CONSECUTIVE_ERRORS,
                            turns=turn + 1,
                            tool_calls=tool_calls_log,
                        )
                else:
                    self._consecutive_errors = 0

                # Observe
                messages.append({
                    "role": "tool",
                    "tool_call_id": tool_call.id,
                    "content": format_tool_result(
                        tool_name, result.success, result.output, result.error
                    ),
                })

        return AgentResult(
            response="Max turns reached",
            stop_reason=StopReason.MAX_TURNS,
            turns=self.config.max_turns,
            tool_calls=tool_calls_log,
        )
