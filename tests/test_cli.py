"""Tests for CLI."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from smartmem.agent import StopReason
from smartmem.cli import CLI, build_registry
from smartmem.config import MemoryConfig
from smartmem.events import BEFORE_TURN, TURN_END
from smartmem.memory import MemoryFact, MemoryManager


@pytest.fixture
def manager(fake_store, embedder) -> MemoryManager:
    return MemoryManager(MemoryConfig(), fake_store, embedder)


@pytest.fixture
def mock_client() -> AsyncMock:
    client = AsyncMock()
    message = MagicMock()
    message.content = "Hello!"
    message.tool_calls = None
    client.chat.completions.create.return_value = MagicMock(choices=[MagicMock(message=message)])
    return client


@pytest.fixture
def cli(manager: MemoryManager, mock_client: AsyncMock) -> CLI:
    return CLI(manager, groq_client=mock_client)


def test_build_registry(manager: MemoryManager) -> None:
    assert build_registry(manager).list_tools() == ["memory_recall", "memory_store", "memory_forget"]


def test_memory_hooks_registered(cli: CLI, manager: MemoryManager) -> None:
    assert cli.bus.handlers(BEFORE_TURN) == [manager.on_before_turn]
    assert cli.bus.handlers(TURN_END) == [manager.on_turn_end]


def test_new_chat_id(cli: CLI) -> None:
    """Test chat ID generation."""
    assert cli.chat_id.startswith("cli-")
    assert len(cli.chat_id) == 12  # "cli-" + 8 hex chars


@pytest.mark.asyncio
async def test_handle_command_exit(cli: CLI) -> None:
    assert await cli._handle_command("/exit") is False
    assert await cli._handle_command("quit") is False


@pytest.mark.asyncio
async def test_handle_command_help(cli: CLI) -> None:
    assert await cli._handle_command("/help") is True


@pytest.mark.asyncio
async def test_handle_command_reset(cli: CLI) -> None:
    """Reset starts a new conversation."""
    cli._history = [{"role": "user", "content": "hi"}]
    old_id = cli.chat_id

    assert await cli._handle_command("/reset") is True
    assert cli.chat_id != old_id
    assert cli._history == []


@pytest.mark.asyncio
async def test_handle_command_count(cli: CLI, fake_store, vector, capsys) -> None:
    await fake_store.upsert(MemoryFact(text="User has a dog"), vector("dog"))

    assert await cli._handle_command("/count") is True
    assert "1 memories stored" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_handle_command_count_store_down(cli: CLI, fake_store, capsys) -> None:
    fake_store.failing.add("count")

    assert await cli._handle_command("/count") is True
    assert "Error: count unavailable" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_process_message_tracks_history(cli: CLI, capsys) -> None:
    await cli._process_message("Hi there")

    assert cli._history == [
        {"role": "user", "content": "Hi there"},
        {"role": "assistant", "content": "Hello!"},
    ]
    assert "Hello!" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_process_message_error_reported(cli: CLI, mock_client: AsyncMock, capsys) -> None:
    mock_client.chat.completions.create.side_effect = RuntimeError("rate limited")

    await cli._process_message("Hi there")

    assert cli._history == []
    assert "Error: rate limited" in capsys.readouterr().out


def test_format_response_stopped(cli: CLI) -> None:
    """Test response formatting when stopped early."""
    output = cli._format_response("Partial", StopReason.MAX_TURNS, 5)
    assert "Partial" in output
    assert "Stopped: max_turns" in output
    assert "turns: 5" in output


@pytest.mark.asyncio
async def test_run_exits_and_stops_manager(cli: CLI, fake_store, monkeypatch) -> None:
    inputs = iter(["", "/help", "/exit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(inputs))

    await cli.run()

    assert fake_store.closed
