"""Gamebook: a Markdown + YAML interactive-fiction DSL.

Authoring flow:
  1. parse(source) compiles a story into a ``Game`` (never raises; returns a
     ParseSuccess or ParseFailure).
  2. stringify(game) writes the canonical DSL back out.
  3. to_playable_game(game) strips prompts and AI settings for the client.

Play flow, per player action:
  evaluate_condition filters the scene's choices, execute_set applies the
  taken choice to the runtime state, interpolate_variables and
  replace_character_mentions fill in scene text. gamebook.session wraps these
  into an immutable PlaySession with undo history.
"""

from .evaluator import evaluate_condition, execute_set, get_value, interpolate_variables  # noqa: F401
from .mentions import replace_character_mentions  # noqa: F401
from .models import (  # noqa: F401
    Game,
    ParseFailure,
    ParseResult,
    ParseSuccess,
    PlayableGame,
    RuntimeState,
    Scene,
    SceneNode,
    VariableMeta,
)
from .parser import parse  # noqa: F401
from .playable import (  # noqa: F401
    from_serializable_playable_game,
    to_playable_game,
    to_serializable_playable_game,
)
from .serializer import stringify  # noqa: F401
from .variables import (  # noqa: F401
    extract_runtime_state,
    get_variable_meta,
    get_visible_variables,
    is_variable_meta,
)
