"""Story linting.

Two independent passes:

  validate_game    over a parsed ``Game``: scene references, the start scene,
                   orphan scenes, character ids, and expressions the
                   evaluator cannot read.
  validate_script  over raw DSL text, line by line: every YAML block (front
                   matter and generation fences) is loaded with PyYAML and
                   checked for the quoting mistakes authors commonly make,
                   and duplicate scene headers are reported with their line.

The parser does not run either pass unless asked (``parse(..., strict=True)``).
"""

import math
import re
import textwrap
from typing import Literal

import yaml
from pydantic import BaseModel

from gamebook.evaluator import check_condition, check_set, js_string
from gamebook.mentions import find_character_mentions
from gamebook.models import AIImageNode, ChoiceNode, Game, TextNode, VariableMeta

Severity = Literal["error", "warning"]

GENERATION_FENCES = ("image-gen", "audio-gen", "video-gen", "minigame-gen")

_SCENE_HEADER_RE = re.compile(r"^# ([\w-]+)\s*$", re.ASCII)
_YAML_KEY_VALUE_RE = re.compile(r"^(\s*)(\w+):\s*(.+)$", re.ASCII)
_BARE_GT_RE = re.compile(r"[^=!<]>")


class ValidationIssue(BaseModel):
    severity: Severity
    message: str
    line: int | None = None
    scene_id: str | None = None
    block_type: str | None = None


def has_errors(issues: list[ValidationIssue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


# ── Parsed game ──────────────────────────────────────────


def validate_game(game: Game) -> list[ValidationIssue]:
    """Check reference integrity and expressions of a parsed game."""
    issues: list[ValidationIssue] = []
    referenced: set[str] = set()
    characters = game.ai.characters or {}

    if game.start_scene_id not in game.scenes:
        issues.append(ValidationIssue(
            severity="error",
            message=f'Missing required "# {game.start_scene_id}" scene',
        ))

    for scene in game.scenes.values():
        for node in scene.nodes:
            if isinstance(node, ChoiceNode):
                referenced.add(node.next_scene_id)
                issues.extend(_check_choice(node, scene.id, game))
            elif isinstance(node, AIImageNode):
                for char_id in [node.character, *(node.characters or [])]:
                    if char_id and char_id not in characters:
                        issues.append(ValidationIssue(
                            severity="warning",
                            message=f'Unknown character "{char_id}" in image-gen block',
                            scene_id=scene.id,
                            block_type="image-gen",
                        ))
            elif isinstance(node, TextNode):
                for char_id in find_character_mentions(node.content):
                    if char_id not in characters:
                        issues.append(ValidationIssue(
                            severity="warning",
                            message=f'Mention "@{char_id}" does not match a character',
                            scene_id=scene.id,
                        ))

    for key, val in game.initial_state.items():
        if not isinstance(val, VariableMeta) or val.trigger is None:
            continue
        referenced.add(val.trigger.scene)
        if val.trigger.scene not in game.scenes:
            issues.append(ValidationIssue(
                severity="error",
                message=f'Trigger of variable "{key}" targets undefined scene "{val.trigger.scene}"',
            ))
        problem = check_condition(f"{js_string(val.value)} {val.trigger.condition}")
        if problem:
            issues.append(ValidationIssue(
                severity="warning",
                message=f'Trigger of variable "{key}": {problem}',
            ))

    for scene_id in game.scenes:
        if scene_id != game.start_scene_id and scene_id not in referenced:
            issues.append(ValidationIssue(
                severity="warning",
                message=f'Scene "{scene_id}" is defined but never referenced (orphan)',
                scene_id=scene_id,
            ))
    return issues


def _check_choice(choice: ChoiceNode, scene_id: str, game: Game) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    if choice.next_scene_id not in game.scenes:
        issues.append(ValidationIssue(
            severity="error",
            message=f'Referenced scene "{choice.next_scene_id}" is not defined',
            scene_id=scene_id,
        ))
    if choice.condition:
        problem = check_condition(choice.condition)
        if problem:
            issues.append(ValidationIssue(severity="warning", message=problem, scene_id=scene_id))
    if choice.set:
        for problem in check_set(choice.set):
            issues.append(ValidationIssue(severity="warning", message=problem, scene_id=scene_id))
    return issues


# ── Raw script ───────────────────────────────────────────


def extract_yaml_blocks(text: str) -> list[tuple[str, str, int]]:
    """Return (block type, body, 1-based line of the opening delimiter)."""
    lines = text.replace("\r\n", "\n").split("\n")
    blocks: list[tuple[str, str, int]] = []
    block_type: str | None = None
    body: list[str] = []
    start = 0

    for i, line in enumerate(lines):
        stripped = line.strip()
        if block_type is None:
            if i == 0 and stripped.lstrip("\ufeff") == "---":
                block_type, body, start = "frontmatter", [], 1
            elif stripped.startswith("```") and stripped[3:].strip() in GENERATION_FENCES:
                block_type, body, start = stripped[3:].strip(), [], i + 1
            continue
        closing = "---" if block_type == "frontmatter" else "```"
        if stripped == closing:
            blocks.append((block_type, "\n".join(body), start))
            block_type = None
        else:
            body.append(line)

    if block_type is not None:
        blocks.append((block_type, "\n".join(body), start))
    return blocks


def check_yaml_block(block_type: str, body: str, start: int) -> list[ValidationIssue]:
    """Load one block with PyYAML and run the quoting heuristics on its lines."""
    issues: list[ValidationIssue] = []
    try:
        yaml.safe_load(textwrap.dedent(body))
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        issues.append(ValidationIssue(
            severity="error",
            message=f"YAML parsing failed: {getattr(e, 'problem', None) or e}",
            line=start + mark.line + 1 if mark is not None else start,
            block_type=block_type,
        ))

    for offset, line in enumerate(body.split("\n")):
        match = _YAML_KEY_VALUE_RE.match(line)
        if not match:
            continue
        line_no = start + offset + 1
        value = match.group(3)

        def warn(message: str) -> None:
            issues.append(ValidationIssue(
                severity="warning", message=message, line=line_no, block_type=block_type,
            ))

        if value.count('"') % 2:
            warn("Unbalanced double quotes in value")
        if value.startswith(('"', "'", "|", ">")):
            continue
        if ": " in value or " #" in value:
            warn("Value contains special characters (: or #) - should be quoted")
        if _BARE_GT_RE.search(value):
            warn('Value contains ">" character - may cause YAML parsing issues')
    return issues


def validate_script(text: str) -> list[ValidationIssue]:
    """Line-mapped checks over raw DSL text."""
    issues: list[ValidationIssue] = []
    for block_type, body, start in extract_yaml_blocks(text):
        issues.extend(check_yaml_block(block_type, body, start))

    seen: dict[str, int] = {}
    in_fence = False
    for i, line in enumerate(text.replace("\r\n", "\n").split("\n"), start=1):
        if line.strip().startswith("```"):
            in_fence = not in_fence
            continue
        match = None if in_fence else _SCENE_HEADER_RE.match(line)
        if not match:
            continue
        scene_id = match.group(1)
        if scene_id in seen:
            issues.append(ValidationIssue(
                severity="warning",
                message=f'Duplicate scene ID "{scene_id}" (first defined on line {seen[scene_id]})',
                line=i,
                scene_id=scene_id,
            ))
        else:
            seen[scene_id] = i
    return issues


# ── Statistics ───────────────────────────────────────────


def game_stats(game: Game) -> dict[str, int]:
    """Scene and choice counts plus a rough playtime range in minutes."""
    choices = 0
    endings = 0
    for scene in game.scenes.values():
        count = sum(1 for node in scene.nodes if isinstance(node, ChoiceNode))
        choices += count
        if not count:
            endings += 1
    scenes = len(game.scenes)
    return {
        "scenes": scenes,
        "choices": choices,
        "endings": endings,
        "playtime_min": math.floor(scenes * 1.5 + 0.5),
        "playtime_max": math.floor(scenes * 2.5 + 0.5),
    }
