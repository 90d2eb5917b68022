"""Shared wire models between UI and host.

Keep these lightweight and stable; they form the UI↔host contract.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

EVENT_CONFIRMATION_REQUIRED = "confirmation_required"
EVENT_TOOL_USE = "tool_use"
EVENT_ERROR = "error"
EVENT_FINAL_RESULT = "final_result"
EVENT_AUTHORIZATION_REQUIRED = "authorization_required"

PROMPT_EVENT_CHANNEL = "PromptEvent"

EventType = Literal[
    "confirmation_required",
    "tool_use",
    "error",
    "final_result",
    "authorization_required",
]


class StdioTransport(BaseModel):
    """Provider reached by spawning a local process."""

    type: Literal["stdio"] = "stdio"
    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)


class SseTransport(BaseModel):
    """Provider reached over a server-sent-events endpoint."""

    type: Literal["sse"] = "sse"
    url: str
    headers: list[str] = Field(default_factory=list)


Transport = Annotated[Union[StdioTransport, SseTransport], Field(discriminator="type")]


class ProviderConfig(BaseModel):
    name: str
    transport: Transport
    enabled: bool = True
    active: bool = False

    @property
    def kind(self) -> str:
        return self.transport.type


class PromptEvent(BaseModel):
    type: EventType
    data: Any = None
    request_id: Optional[str] = None


class ConfirmationRequiredData(BaseModel):
    token: str
    tool: str
    args: Any = None


class HistoryEntry(BaseModel):
    id: int
    query: str
    timestamp: datetime


class AppSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base_url: str = Field(default="", alias="baseUrl")
    api_key: str = Field(default="", alias="apiKey")
    model: str = ""
    available_models: list[str] = Field(default_factory=list, alias="availableModels")


class SubmitQueryRequest(BaseModel):
    text: str
    request_id: Optional[str] = None


class Ack(BaseModel):
    ok: bool = True
    request_id: Optional[str] = None


class ConfirmationDecision(BaseModel):
    token: str
    decision: bool


class SetEnabledRequest(BaseModel):
    enabled: bool


class StdioProviderRequest(BaseModel):
    name: str
    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)


class SseProviderRequest(BaseModel):
    name: str
    url: str
    headers: list[str] = Field(default_factory=list)
