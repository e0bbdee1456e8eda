"""Core domain models.

The parser produces these types, the serializer and projector consume them.
Pydantic is used for validation and serialisation at every data boundary.

Attribute names are snake_case. Fields whose DSL/wire name is camelCase
(``initialState``, ``nextSceneId``, ...) carry that name as an alias, so both
spellings are accepted on input and ``model_dump(by_alias=True)`` emits the
wire form.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Scalar = Union[bool, int, float, str]
RuntimeState = dict[str, Scalar]

VariableDisplay = Literal["value", "progress", "icon"]
AudioType = Literal["sfx", "background_music"]


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ── Variables ────────────────────────────────────────────


class VariableTrigger(_Model):
    """Jump to ``scene`` once ``"<value> <condition>"`` holds, e.g. ``"<= 0"``."""

    condition: str
    scene: str


class VariableMeta(_Model):
    """An initial-state variable with display metadata."""

    value: Scalar
    visible: bool | None = None
    display: VariableDisplay | None = None
    max: int | float | None = None
    label: str | None = None
    icon: str | None = None  # emoji, used with display == "icon"
    trigger: VariableTrigger | None = None


VariableValue = Union[bool, int, float, str, VariableMeta]
GameState = dict[str, VariableValue]


# ── AI configuration ─────────────────────────────────────


class AICharacter(_Model):
    name: str
    description: str | None = None
    image_prompt: str | None = None
    image_url: str | None = None
    voice_name: str | None = None


class AIConfig(_Model):
    style: dict[str, str] | None = None
    characters: dict[str, AICharacter] | None = None


# ── Scene nodes ──────────────────────────────────────────


class TextNode(_Model):
    type: Literal["text"] = "text"
    content: str
    audio_url: str | None = None


class StaticImageNode(_Model):
    type: Literal["static_image"] = "static_image"
    url: str
    alt: str | None = None


class StaticAudioNode(_Model):
    type: Literal["static_audio"] = "static_audio"
    url: str


class StaticVideoNode(_Model):
    type: Literal["static_video"] = "static_video"
    url: str


class AIImageNode(_Model):
    type: Literal["ai_image"] = "ai_image"
    prompt: str
    character: str | None = None
    characters: list[str] | None = None
    url: str | None = None


class AIAudioNode(_Model):
    type: Literal["ai_audio"] = "ai_audio"
    audio_type: AudioType = Field(alias="audioType")
    prompt: str
    url: str | None = None


class AIVideoNode(_Model):
    type: Literal["ai_video"] = "ai_video"
    prompt: str
    url: str | None = None


class ChoiceNode(_Model):
    """A player option. ``condition`` gates it, ``set`` runs when it is taken."""

    type: Literal["choice"] = "choice"
    text: str
    next_scene_id: str = Field(alias="nextSceneId")
    condition: str | None = None  # e.g. "has_key == true"
    set: str | None = None  # e.g. "gold = gold + 5, has_key = false"
    audio_url: str | None = None


class MinigameNode(_Model):
    type: Literal["minigame"] = "minigame"
    prompt: str
    variables: dict[str, str] | None = None  # variable name → description
    url: str | None = None


SceneNode = Annotated[
    Union[
        TextNode,
        StaticImageNode,
        StaticAudioNode,
        StaticVideoNode,
        AIImageNode,
        AIAudioNode,
        AIVideoNode,
        ChoiceNode,
        MinigameNode,
    ],
    Field(discriminator="type"),
]


class Scene(_Model):
    id: str
    nodes: list[SceneNode] = Field(default_factory=list)


# ── Game ─────────────────────────────────────────────────


class Game(_Model):
    """Authoring representation of a whole story."""

    title: str
    description: str | None = None
    background_story: str | None = Field(default=None, alias="backgroundStory")
    cover_image: str | None = None
    cover_prompt: str | None = None
    cover_aspect_ratio: str | None = None
    tags: list[str] = Field(default_factory=list)
    published: bool = False
    slug: str | None = None
    initial_state: GameState = Field(default_factory=dict, alias="initialState")
    ai: AIConfig = Field(default_factory=AIConfig)
    scenes: dict[str, Scene] = Field(default_factory=dict)  # authoring order
    start_scene_id: str = Field(default="start", alias="startSceneId")


class ParseSuccess(_Model):
    success: Literal[True] = True
    data: Game


class ParseFailure(_Model):
    success: Literal[False] = False
    error: str


ParseResult = Union[ParseSuccess, ParseFailure]


# ── Playable projection ──────────────────────────────────


class PlayableCharacter(_Model):
    name: str
    image_url: str | None = None


class PlayableAIImageNode(_Model):
    type: Literal["ai_image"] = "ai_image"
    url: str | None = None
    alt: str | None = None


class PlayableAIAudioNode(_Model):
    type: Literal["ai_audio"] = "ai_audio"
    audio_type: AudioType = Field(alias="audioType")
    url: str | None = None


class PlayableAIVideoNode(_Model):
    type: Literal["ai_video"] = "ai_video"
    url: str | None = None


class PlayableMinigameNode(_Model):
    type: Literal["minigame"] = "minigame"
    url: str | None = None
    variables: list[str] | None = None  # names only, descriptions are authoring data


PlayableSceneNode = Annotated[
    Union[
        TextNode,
        StaticImageNode,
        StaticAudioNode,
        StaticVideoNode,
        PlayableAIImageNode,
        PlayableAIAudioNode,
        PlayableAIVideoNode,
        ChoiceNode,
        PlayableMinigameNode,
    ],
    Field(discriminator="type"),
]


class PlayableScene(_Model):
    id: str
    nodes: list[PlayableSceneNode] = Field(default_factory=list)


class PlayableGame(_Model):
    """What a client runtime receives: no prompts, no AI style, no editor data."""

    slug: str | None = None
    title: str
    description: str | None = None
    background_story: str | None = Field(default=None, alias="backgroundStory")
    cover_image: str | None = None
    tags: list[str] = Field(default_factory=list)
    initial_state: GameState = Field(default_factory=dict, alias="initialState")
    characters: dict[str, PlayableCharacter] | None = None
    scenes: dict[str, PlayableScene] = Field(default_factory=dict)
    start_scene_id: str = Field(default="start", alias="startSceneId")
