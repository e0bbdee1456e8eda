"""Generation-block YAML → scene nodes."""

import textwrap
from typing import Any

import yaml

from gamebook.errors import DSLSyntaxError
from gamebook.models import AIAudioNode, AIImageNode, AIVideoNode, MinigameNode, SceneNode

AUDIO_TYPES = ("sfx", "background_music")


def load_block_yaml(content: str, fence: str, *, scene_id: str, node_index: int, line: int) -> dict[str, Any]:
    """Parse a fenced block body. ``line`` is the line of the opening fence."""
    try:
        data = yaml.safe_load(textwrap.dedent(content))
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        error_line = line + mark.line + 1 if mark is not None else line
        problem = getattr(e, "problem", None) or str(e)
        raise DSLSyntaxError(
            f"YAML parsing failed in {fence} block: {problem}",
            scene_id=scene_id, node_index=node_index, line=error_line, block_type=fence,
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DSLSyntaxError(
            f"{fence} block must contain a YAML mapping",
            scene_id=scene_id, node_index=node_index, line=line, block_type=fence,
        )
    return data


def _str_or_none(value: Any) -> str | None:
    return None if value is None else str(value)


def _string_list(value: Any) -> list[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        items = [v.strip() for v in value.split(",")]
    elif isinstance(value, list):
        items = [str(v).strip() for v in value]
    else:
        items = [str(value)]
    items = [v for v in items if v]
    return items or None


def _minigame_variables(value: Any) -> dict[str, str] | None:
    """Accept ``{name: desc}`` or ``[{name: desc}, ...]`` (or bare names)."""
    if value is None:
        return None
    variables: dict[str, str] = {}
    entries = value if isinstance(value, list) else [value]
    for entry in entries:
        if isinstance(entry, dict):
            for name, desc in entry.items():
                variables[str(name)] = "" if desc is None else str(desc)
        elif entry is not None:
            variables[str(entry)] = ""
    return variables or None


def build_generation_node(
    fence: str, data: dict[str, Any], *, scene_id: str, node_index: int, line: int
) -> SceneNode:
    """Build the node for one ``*-gen`` block from its parsed YAML."""

    def fail(message: str) -> DSLSyntaxError:
        return DSLSyntaxError(
            f"{fence} block {message}",
            scene_id=scene_id, node_index=node_index, line=line, block_type=fence,
        )

    prompt = data.get("prompt")
    if prompt is None or not str(prompt).strip():
        raise fail("requires a prompt")
    prompt = str(prompt).strip()
    url = _str_or_none(data.get("url"))

    if fence == "image-gen":
        return AIImageNode(
            prompt=prompt,
            character=_str_or_none(data.get("character")),
            characters=_string_list(data.get("characters")),
            url=url,
        )

    if fence == "audio-gen":
        audio_type = data.get("type", data.get("audioType", data.get("audio_type")))
        if audio_type not in AUDIO_TYPES:
            raise fail(f"requires type: {' or '.join(AUDIO_TYPES)} (got {audio_type!r})")
        return AIAudioNode(audio_type=audio_type, prompt=prompt, url=url)

    if fence == "video-gen":
        return AIVideoNode(prompt=prompt, url=url)

    if fence == "minigame-gen":
        return MinigameNode(prompt=prompt, variables=_minigame_variables(data.get("variables")), url=url)

    raise fail("is not a known block type")
