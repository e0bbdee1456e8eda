"""``@character_id`` mention substitution."""

import re
from collections.abc import Mapping
from typing import Any

MENTION_RE = re.compile(r"@(\w+)", re.ASCII)


def _display_name(character: Any) -> str | None:
    if isinstance(character, Mapping):
        return character.get("name")
    return getattr(character, "name", None)


def replace_character_mentions(text: str, characters: Mapping[str, Any] | None) -> str:
    """Replace ``@id`` with the character's display name.

    "@lrrh meets @wolf" with {"lrrh": {"name": "Red"}, "wolf": {"name": "Wolf"}}
    → "Red meets Wolf". Unknown ids are left as written.
    """
    if not characters:
        return text

    def _replace(match: re.Match) -> str:
        character = characters.get(match.group(1))
        name = _display_name(character) if character is not None else None
        return name if name else match.group(0)

    return MENTION_RE.sub(_replace, text)


def find_character_mentions(text: str) -> list[str]:
    """Character ids mentioned in ``text``, first occurrence order, no repeats."""
    return list(dict.fromkeys(MENTION_RE.findall(text)))
