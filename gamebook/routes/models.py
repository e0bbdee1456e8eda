"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, Field

from gamebook.models import RuntimeState
from gamebook.session import PlaySession


class SourceBody(BaseModel):
    source: str


class ParseBody(BaseModel):
    source: str
    strict: bool | None = None  # None: use GAMEBOOK_STRICT


class EvaluateBody(BaseModel):
    condition: str | None = None
    state: RuntimeState = Field(default_factory=dict)


class ExecuteBody(BaseModel):
    instruction: str | None = None
    state: RuntimeState = Field(default_factory=dict)


class InterpolateBody(BaseModel):
    text: str
    state: RuntimeState = Field(default_factory=dict)


class ChooseBody(BaseModel):
    source: str
    session: PlaySession
    index: int


class UndoBody(BaseModel):
    source: str
    session: PlaySession
