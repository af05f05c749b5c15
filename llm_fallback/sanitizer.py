"""
Cost guard for chat requests.

Bounds the conversation sent upstream and the number of tokens a provider may
generate. The newest context is always kept: old messages are dropped first and
long messages keep their tail.
"""

from dataclasses import dataclass

from .models import ChatMessage, ChatRequest


@dataclass(frozen=True)
class SanitizerLimits:
    max_messages: int = 24
    max_chars_per_message: int = 3200
    max_total_chars: int = 24000
    default_output_tokens: int = 1024
    hard_cap_output_tokens: int = 2048


def _total_chars(messages: list[ChatMessage]) -> int:
    return sum(len(m.content) for m in messages)


def sanitize(request: ChatRequest, limits: SanitizerLimits) -> ChatRequest:
    """Clamp a chat request to the configured limits. Never raises."""
    messages = list(request.messages)

    if limits.max_messages <= 0:
        messages = []
    elif len(messages) > limits.max_messages:
        messages = messages[-limits.max_messages:]

    cap = max(limits.max_chars_per_message, 0)
    messages = [
        m if len(m.content) <= cap
        else ChatMessage(role=m.role, content=m.content[len(m.content) - cap:])
        for m in messages
    ]

    while len(messages) > 1 and _total_chars(messages) > limits.max_total_chars:
        messages.pop(0)

    requested = request.max_output_tokens or limits.default_output_tokens
    max_output_tokens = min(requested, limits.hard_cap_output_tokens)

    return request.model_copy(
        update={"messages": messages, "max_output_tokens": max_output_tokens}
    )
