"""``Game`` → DSL text, the inverse of ``parse``.

``parse(stringify(game)).data == game`` holds for every game ``parse`` can
produce. Front matter and fenced-block bodies go through PyYAML so any
string survives quoting; everything else is written line by line.
"""

from typing import Any

import yaml

from gamebook.models import (
    AIAudioNode,
    AIImageNode,
    AIVideoNode,
    ChoiceNode,
    Game,
    MinigameNode,
    Scene,
    SceneNode,
    StaticAudioNode,
    StaticImageNode,
    StaticVideoNode,
    TextNode,
    VariableMeta,
)

FENCE = "```"
SCENE_SEPARATOR = "---"


class _FlowList(list):
    """A list dumped inline: ``characters: [lrrh, wolf]``."""


class _Dumper(yaml.SafeDumper):
    """SafeDumper that indents block sequences under their key."""

    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    # multi-line values stay on one physical line so no line can close a fence
    if "\n" in data or "\r" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')
    return dumper.represent_str(data)


_Dumper.add_representer(str, _represent_str)
_Dumper.add_representer(
    _FlowList,
    lambda dumper, data: dumper.represent_sequence("tag:yaml.org,2002:seq", data, flow_style=True),
)


def dump_yaml(data: dict[str, Any]) -> str:
    return yaml.dump(
        data,
        Dumper=_Dumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        indent=2,
        width=2**31 - 1,
    )


def _state_value(value: Any) -> Any:
    if isinstance(value, VariableMeta):
        return value.model_dump(exclude_none=True)
    return value


def front_matter(game: Game) -> dict[str, Any]:
    """The front-matter mapping, holding only fields that are set."""
    fm: dict[str, Any] = {"title": game.title}
    if game.description:
        fm["description"] = game.description
    if game.background_story:
        fm["backgroundStory"] = game.background_story
    if game.cover_image:
        fm["cover_image"] = game.cover_image
    if game.cover_prompt:
        fm["cover_prompt"] = game.cover_prompt
    if game.cover_aspect_ratio:
        fm["cover_aspect_ratio"] = game.cover_aspect_ratio
    if game.tags:
        fm["tags"] = list(game.tags)
    if game.published:
        fm["published"] = True
    if game.slug:
        fm["slug"] = game.slug
    if game.initial_state:
        fm["state"] = {key: _state_value(val) for key, val in game.initial_state.items()}

    ai: dict[str, Any] = {}
    if game.ai.style:
        ai["style"] = dict(game.ai.style)
    if game.ai.characters:
        ai["characters"] = {
            char_id: char.model_dump(exclude_none=True) for char_id, char in game.ai.characters.items()
        }
    if ai:
        fm["ai"] = ai
    return fm


def _fenced(fence: str, fields: dict[str, Any]) -> list[str]:
    body = dump_yaml({k: v for k, v in fields.items() if v is not None})
    return [f"{FENCE}{fence}", *body.rstrip("\n").split("\n"), FENCE]


def _choice_line(node: ChoiceNode) -> str:
    line = f"* [{node.text}] -> {node.next_scene_id}"
    if node.condition:
        line += f" (if: {node.condition})"
    if node.set:
        line += f" (set: {node.set})"
    if node.audio_url:
        line += f" (audio: {node.audio_url})"
    return line


def node_lines(node: SceneNode) -> list[str]:
    """Render one node as DSL lines."""
    if isinstance(node, TextNode):
        lines = [f"<!-- audio: {node.audio_url} -->"] if node.audio_url else []
        return [*lines, node.content]
    if isinstance(node, StaticImageNode):
        return [f"![{node.alt or ''}]({node.url})"]
    if isinstance(node, StaticAudioNode):
        return [f"[audio]({node.url})"]
    if isinstance(node, StaticVideoNode):
        return [f"[video]({node.url})"]
    if isinstance(node, ChoiceNode):
        return [_choice_line(node)]
    if isinstance(node, AIImageNode):
        return _fenced("image-gen", {
            "prompt": node.prompt,
            "character": node.character,
            "characters": _FlowList(node.characters) if node.characters else None,
            "url": node.url,
        })
    if isinstance(node, AIAudioNode):
        return _fenced("audio-gen", {"type": node.audio_type, "prompt": node.prompt, "url": node.url})
    if isinstance(node, AIVideoNode):
        return _fenced("video-gen", {"prompt": node.prompt, "url": node.url})
    if isinstance(node, MinigameNode):
        variables = [{name: desc} for name, desc in node.variables.items()] if node.variables else None
        return _fenced("minigame-gen", {"prompt": node.prompt, "variables": variables, "url": node.url})
    raise TypeError(f"Cannot serialise scene node of type {type(node).__name__}")


def scene_lines(scene: Scene) -> list[str]:
    lines = [f"# {scene.id}"]
    for node in scene.nodes:
        lines.extend(node_lines(node))
    return lines


def stringify(game: Game) -> str:
    """Render a ``Game`` as canonical DSL text."""
    header = f"---\n{dump_yaml(front_matter(game))}---"
    scenes = f"\n\n{SCENE_SEPARATOR}\n\n".join("\n".join(scene_lines(s)) for s in game.scenes.values())
    return f"{header}\n\n{scenes}".strip()
