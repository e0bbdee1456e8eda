"""Scene graph builder: front matter + raw scenes → ``Game``."""

import logging
from typing import Any

import yaml
from pydantic import ValidationError

from gamebook.errors import DSLSyntaxError
from gamebook.models import (
    ChoiceNode,
    Game,
    ParseFailure,
    ParseResult,
    ParseSuccess,
    Scene,
    SceneNode,
    StaticAudioNode,
    StaticImageNode,
    StaticVideoNode,
    TextNode,
)
from gamebook.validator import validate_game

from .blocks import RawScene, extract_scenes, split_front_matter
from .nodes import build_generation_node, load_block_yaml

logger = logging.getLogger(__name__)


def parse(source: str, *, strict: bool = False) -> ParseResult:
    """Compile DSL source into a ``Game``.

    Never raises for bad input: every problem comes back as a
    ``ParseFailure`` whose ``error`` names the block, scene and line where
    known. With ``strict=True`` the validator also runs and any error-level
    issue (missing start scene, dangling choice target, ...) fails the parse.
    """
    if not source or not source.strip():
        return ParseFailure(error="YAML front matter is missing or invalid")
    try:
        game = build_game(source)
    except DSLSyntaxError as e:
        return ParseFailure(error=str(e))
    except ValidationError as e:
        return ParseFailure(error=f"Invalid game data: {e}")

    if strict:
        errors = [i for i in validate_game(game) if i.severity == "error"]
        if errors:
            return ParseFailure(error="; ".join(i.message for i in errors))
    return ParseSuccess(data=game)


def build_game(source: str) -> Game:
    """Like ``parse`` but raises ``DSLSyntaxError``/``ValidationError``."""
    front_matter, body, body_line = split_front_matter(source)
    meta = load_front_matter(front_matter)
    raw_scenes = extract_scenes(body, body_line)

    scenes: dict[str, Scene] = {}
    for raw in raw_scenes:
        if raw.id in scenes:
            logger.warning(f"Duplicate scene id '{raw.id}' on line {raw.line}; the later scene wins")
        scenes[raw.id] = build_scene(raw)

    return Game(scenes=scenes, **game_fields(meta))


def load_front_matter(text: str) -> dict[str, Any]:
    try:
        meta = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DSLSyntaxError(f"YAML parsing failed: {e}", block_type="frontmatter") from e
    if not isinstance(meta, dict):
        raise DSLSyntaxError("YAML front matter is missing or invalid", block_type="frontmatter")
    return meta


def _text(value: Any) -> str | None:
    """Optional front-matter text; blank counts as unset."""
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _tags(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [str(t) for t in value]
    return [str(value)]


def _characters(value: Any) -> dict[str, Any] | None:
    if not value:
        return None
    if not isinstance(value, dict):
        raise DSLSyntaxError("ai.characters must be a mapping of id to character", block_type="frontmatter")
    characters: dict[str, Any] = {}
    for char_id, char in value.items():
        # shorthand: `hero: Hero`
        characters[str(char_id)] = char if isinstance(char, dict) else {"name": _text(char) or str(char_id)}
    return characters


def game_fields(meta: dict[str, Any]) -> dict[str, Any]:
    """Map front-matter keys onto ``Game`` fields, applying defaults."""
    title = meta.get("title")
    if title is None or not str(title).strip():
        raise DSLSyntaxError("Title is required", block_type="frontmatter")

    state = meta.get("initialState", meta.get("state"))
    if state is None:
        state = {}
    if not isinstance(state, dict):
        raise DSLSyntaxError("Initial state must be a mapping of variable names", block_type="frontmatter")

    ai = meta.get("ai") or {}
    if not isinstance(ai, dict):
        raise DSLSyntaxError("ai must be a mapping", block_type="frontmatter")
    style = ai.get("style")
    if style is not None and not isinstance(style, dict):
        raise DSLSyntaxError("ai.style must be a mapping", block_type="frontmatter")

    published = meta.get("published")
    return {
        "title": str(title),
        "description": _text(meta.get("description")),
        "background_story": _text(meta.get("backgroundStory", meta.get("background_story"))),
        "cover_image": _text(meta.get("cover_image")),
        "cover_prompt": _text(meta.get("cover_prompt")),
        "cover_aspect_ratio": _text(meta.get("cover_aspect_ratio")),
        "tags": _tags(meta.get("tags")),
        "published": False if published is None else published,
        "slug": _text(meta.get("slug")),
        "initial_state": {str(k): v for k, v in state.items()},
        "ai": {
            "style": {str(k): str(v) for k, v in style.items()} if style else None,
            "characters": _characters(ai.get("characters")),
        },
    }


def build_scene(raw: RawScene) -> Scene:
    """Turn one scene's blocks into typed nodes, preserving their order."""
    nodes: list[SceneNode] = []
    pending_audio: str | None = None

    for block in raw.blocks:
        index = len(nodes)

        if block.kind == "audio_comment":
            pending_audio = block.fields["url"]
            continue

        if pending_audio is not None and block.kind != "text":
            logger.warning(
                f"Audio comment on scene '{raw.id}' is not followed by text (line {block.line}); dropped"
            )
            pending_audio = None

        if block.kind == "text":
            nodes.append(TextNode(content=block.content, audio_url=pending_audio))
            pending_audio = None
        elif block.kind == "choice":
            nodes.append(ChoiceNode(
                text=block.fields["text"].strip(),
                next_scene_id=block.fields["target"],
                condition=block.fields.get("if") or None,
                set=block.fields.get("set") or None,
                audio_url=block.fields.get("audio") or None,
            ))
        elif block.kind == "static_image":
            nodes.append(StaticImageNode(url=block.fields["url"], alt=block.fields.get("alt") or None))
        elif block.kind == "static_audio":
            nodes.append(StaticAudioNode(url=block.fields["url"]))
        elif block.kind == "static_video":
            nodes.append(StaticVideoNode(url=block.fields["url"]))
        elif block.kind == "fence":
            fence = block.fields["fence"]
            data = load_block_yaml(block.content, fence, scene_id=raw.id, node_index=index, line=block.line)
            nodes.append(build_generation_node(fence, data, scene_id=raw.id, node_index=index, line=block.line))
        else:
            raise DSLSyntaxError(f"Unknown block kind '{block.kind}'", scene_id=raw.id, line=block.line)

    if pending_audio is not None:
        logger.warning(f"Audio comment at the end of scene '{raw.id}' has no text; dropped")
    return Scene(id=raw.id, nodes=nodes)
