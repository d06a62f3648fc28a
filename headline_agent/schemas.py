"""Pydantic schemas for headline requests and A2A JSON-RPC envelopes."""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Tone = Literal["professional", "casual", "inspirational", "educational"]

TONES = ("professional", "casual", "inspirational", "educational")
DEFAULT_TONE: Tone = "professional"


class GenerationRequest(BaseModel):
    """Canonical, already-cleaned input handed to the headline pipeline."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = Field(..., description="Cleaned post content to write headlines for.")
    target_audience: Optional[str] = Field(
        default=None,
        alias="targetAudience",
        description="Optional audience the post is written for.",
    )
    tone: Tone = Field(
        default=DEFAULT_TONE,
        description="professional | casual | inspirational | educational",
    )

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("text must not be empty")
        return value


class HeadlineSet(BaseModel):
    """Ordered candidates plus the recommended one (always the first)."""

    model_config = ConfigDict(frozen=True)

    candidates: List[str] = Field(..., min_length=1)
    best: str

    @model_validator(mode="after")
    def _best_is_first(self) -> "HeadlineSet":
        if self.best != self.candidates[0]:
            raise ValueError("best headline must be the first candidate")
        return self


class TextPart(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class DataPart(BaseModel):
    kind: Literal["data"] = "data"
    data: Dict[str, Any]


class AgentMessage(BaseModel):
    """Agent reply carried in ``result.status.message``."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: str = Field(..., alias="messageId")
    role: Literal["agent"] = "agent"
    parts: List[TextPart]
    kind: Literal["message"] = "message"


class TaskStatus(BaseModel):
    state: Literal["completed"] = "completed"
    timestamp: str
    message: AgentMessage


class Artifact(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    artifact_id: str = Field(..., alias="artifactId")
    name: str
    parts: List[Union[TextPart, DataPart]]


class TaskResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    context_id: str = Field(..., alias="contextId")
    status: TaskStatus
    artifacts: List[Artifact]


class JsonRpcSuccessResponse(BaseModel):
    """Successful JSON-RPC 2.0 response. ``id`` is echoed untouched."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: Any = None
    result: TaskResult

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class JsonRpcErrorBody(BaseModel):
    code: int
    message: str
    data: Optional[str] = None


class JsonRpcErrorResponse(BaseModel):
    """Failed JSON-RPC 2.0 response. ``id`` is ``None`` when unrecoverable."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: Any = None
    error: JsonRpcErrorBody

    def to_payload(self) -> Dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc,
            "id": self.id,
            "error": self.error.model_dump(exclude_none=True),
        }
