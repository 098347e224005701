"""Tests for request models and model selection."""

import pytest
from pydantic import ValidationError

from gptstream.models import ChatMessage, ChatRequest, ExchangeState, ModelChoice, Role, conversation


class TestModelChoice:
    def test_default_resolves_to_client_default(self) -> None:
        assert ModelChoice.default().is_default
        assert ModelChoice.default().resolve("gpt-default") == "gpt-default"

    def test_specific_overrides_default(self) -> None:
        choice = ModelChoice.specific("gpt-4o")

        assert not choice.is_default
        assert choice.resolve("gpt-default") == "gpt-4o"

    def test_specific_requires_identifier(self) -> None:
        with pytest.raises(ValueError):
            ModelChoice.specific("")


class TestChatMessage:
    def test_is_immutable(self) -> None:
        message = ChatMessage(role=Role.USER, content="hi")

        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_unknown_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatMessage(role="tool", content="hi")


class TestChatRequest:
    def test_as_streamed_copies(self) -> None:
        original = ChatRequest(model="m", messages=conversation("hi"), max_tokens=5)

        streamed = original.as_streamed()

        assert streamed.stream is True
        assert streamed.max_tokens == 5
        assert original.stream is False

    def test_wire_format(self) -> None:
        request = ChatRequest.streamed("m", conversation("hi", "sys"), stop=["\n"])

        assert request.to_wire() == {
            "model": "m",
            "messages": [
                {"role": "system", "content": "sys"},
                {"role": "user", "content": "hi"},
            ],
            "stream": True,
            "stop": ["\n"],
        }


class TestExchangeState:
    @pytest.mark.parametrize(
        "state",
        [
            ExchangeState.TERMINATED,
            ExchangeState.ERRORED_BEFORE_BODY,
            ExchangeState.ERRORED_MID_STREAM,
            ExchangeState.CANCELLED,
        ],
    )
    def test_terminal_states(self, state: ExchangeState) -> None:
        assert state.is_terminal

    @pytest.mark.parametrize("state", [ExchangeState.IDLE, ExchangeState.STREAMING])
    def test_open_states(self, state: ExchangeState) -> None:
        assert not state.is_terminal
