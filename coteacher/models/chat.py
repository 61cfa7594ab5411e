"""Conversation models for the course chat endpoint."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """One turn of the client-held conversation history."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    content: str = ""


def latest_user_question(messages: list[ChatMessage]) -> str:
    """Return the most recent user-authored message, trimmed, or ``""``."""
    for message in reversed(messages):
        if message.role is ChatRole.USER:
            return message.content.strip()
    return ""
