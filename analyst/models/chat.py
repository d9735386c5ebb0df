"""Pydantic schemas for the chat conversation."""
from typing import Literal
from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    role: Role
    content: str


class ConversationState(BaseModel):
    messages: list[ChatMessage] = Field(default_factory=list)
    system_prompt_injected: bool = False

    def add_system_message(self, content: str) -> None:
        self.messages.append(ChatMessage(role="system", content=content))

    def add_user_message(self, content: str) -> None:
        self.messages.append(ChatMessage(role="user", content=content))

    def add_assistant_message(self, content: str) -> None:
        self.messages.append(ChatMessage(role="assistant", content=content))

    def inject_system_prompt(self, content: str) -> bool:
        """Add the schema-bearing system message once. Returns False if already injected."""
        if self.system_prompt_injected:
            return False
        self.add_system_message(content)
        self.system_prompt_injected = True
        return True

    def as_payload(self) -> list[dict]:
        """Messages in the {role, content} shape chat-completion APIs expect."""
        return [m.model_dump() for m in self.messages]
