"""Turn-by-turn play over a compiled game.

A ``PlaySession`` is a value: every step returns a new session and leaves
its input untouched, so the caller owns persistence and can keep one slot
per player. ``history`` holds the (scene, state) pairs left behind, newest
last, which is all ``undo`` needs.

Works on both ``Game`` and ``PlayableGame``; only scenes, choices and the
initial state are read.
"""

import logging

from pydantic import BaseModel, Field

from gamebook.errors import ChoiceError
from gamebook.evaluator import evaluate_condition, execute_set, interpolate_variables, js_string
from gamebook.mentions import replace_character_mentions
from gamebook.models import ChoiceNode, Game, GameState, PlayableGame, RuntimeState, TextNode, VariableMeta
from gamebook.variables import extract_runtime_state

logger = logging.getLogger(__name__)

AnyGame = Game | PlayableGame


class HistoryEntry(BaseModel):
    scene_id: str
    state: RuntimeState


class PlaySession(BaseModel):
    scene_id: str
    state: RuntimeState = Field(default_factory=dict)
    history: list[HistoryEntry] = Field(default_factory=list)


def start_session(game: AnyGame) -> PlaySession:
    return PlaySession(scene_id=game.start_scene_id, state=extract_runtime_state(game.initial_state))


def _scene(game: AnyGame, session: PlaySession):
    scene = game.scenes.get(session.scene_id)
    if scene is None:
        raise ChoiceError(f"Scene '{session.scene_id}' does not exist")
    return scene


def scene_choices(game: AnyGame, session: PlaySession) -> list[ChoiceNode]:
    """Every choice of the current scene, available or not."""
    return [node for node in _scene(game, session).nodes if isinstance(node, ChoiceNode)]


def available_choices(game: AnyGame, session: PlaySession) -> list[ChoiceNode]:
    """Choices of the current scene whose condition holds."""
    return [c for c in scene_choices(game, session) if evaluate_condition(c.condition, session.state)]


def check_triggers(initial_state: GameState, state: RuntimeState) -> str | None:
    """Return the scene of the first variable trigger that fires, if any.

    A trigger ``{condition: "<= 0", scene: death}`` on ``health`` fires when
    ``"<health> <= 0"`` evaluates true against ``state``.
    """
    for key, meta in initial_state.items():
        if not isinstance(meta, VariableMeta):
            if not (isinstance(meta, dict) and meta.get("trigger")):
                continue
            meta = VariableMeta.model_validate(meta)
        if meta.trigger is None or key not in state:
            continue
        if evaluate_condition(f"{js_string(state[key])} {meta.trigger.condition}", state):
            return meta.trigger.scene
    return None


def choose(game: AnyGame, session: PlaySession, index: int) -> PlaySession:
    """Take choice number ``index`` (position among all choices of the scene).

    Raises ``ChoiceError`` if there is no such choice or its condition fails.
    """
    choices = scene_choices(game, session)
    if not 0 <= index < len(choices):
        raise ChoiceError(f"Scene '{session.scene_id}' has no choice {index}")
    choice = choices[index]
    if not evaluate_condition(choice.condition, session.state):
        raise ChoiceError(f"Choice '{choice.text}' is not available")

    state = dict(execute_set(choice.set, session.state))
    next_scene = choice.next_scene_id
    triggered = check_triggers(game.initial_state, state)
    if triggered is not None:
        if triggered in game.scenes:
            next_scene = triggered
        else:
            logger.warning(f"Trigger target scene '{triggered}' does not exist; ignoring")

    history = [*session.history, HistoryEntry(scene_id=session.scene_id, state=dict(session.state))]
    return PlaySession(scene_id=next_scene, state=state, history=history)


def undo(session: PlaySession) -> PlaySession:
    """Step back one choice. Raises ``ChoiceError`` at the start of the story."""
    if not session.history:
        raise ChoiceError("Nothing to undo")
    previous = session.history[-1]
    return PlaySession(
        scene_id=previous.scene_id,
        state=dict(previous.state),
        history=list(session.history[:-1]),
    )


def is_ending(game: AnyGame, session: PlaySession) -> bool:
    return not scene_choices(game, session)


def _characters(game: AnyGame):
    if isinstance(game, PlayableGame):
        return game.characters
    return game.ai.characters


def render_scene(game: AnyGame, session: PlaySession) -> list[str]:
    """Text of the current scene with variables and mentions filled in."""
    characters = _characters(game)
    rendered: list[str] = []
    for node in _scene(game, session).nodes:
        if isinstance(node, TextNode):
            text = interpolate_variables(node.content, session.state)
            rendered.append(replace_character_mentions(text, characters))
    return rendered
