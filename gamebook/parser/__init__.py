"""Gamebook DSL compiler.

Compiles one Markdown document into a ``Game``:
  1. Front matter: the leading ``---`` ... ``---`` block, parsed as YAML into
     title, description, backgroundStory, cover_image, tags, published,
     ai.style, ai.characters and the initial state (``state`` or
     ``initialState``).
  2. Scenes: ``# scene_id`` headers; everything up to the next header belongs
     to that scene, in authoring order.
  3. Nodes: generation fences (image-gen, audio-gen, video-gen,
     minigame-gen) become AI nodes, ``* [Text] -> target`` lines become
     choices, markdown media lines become static media, the rest is text.

Scene references are not checked here; see ``gamebook.validator`` or pass
``strict=True``.
"""

from .blocks import (  # noqa: F401
    Block,
    RawScene,
    extract_scenes,
    parse_choice_clauses,
    split_front_matter,
)
from .core import build_game, parse  # noqa: F401
