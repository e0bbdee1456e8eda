"""Play endpoints: start a session, take a choice, undo.

The client keeps the session and sends it back with every step.
"""

from fastapi import APIRouter, HTTPException

from gamebook.errors import ChoiceError
from gamebook.models import Game
from gamebook.session import PlaySession, available_choices, choose, is_ending, render_scene, start_session, undo

from .compiler import compile_source
from .models import ChooseBody, SourceBody, UndoBody

router = APIRouter(prefix="/play")


def session_view(game: Game, session: PlaySession) -> dict:
    """The session plus what the player sees in its current scene."""
    try:
        text = render_scene(game, session)
        choices = available_choices(game, session)
        ending = is_ending(game, session)
    except ChoiceError as e:
        raise HTTPException(409, str(e))
    return {
        "session": session.model_dump(mode="json"),
        "text": text,
        "choices": [c.model_dump(mode="json", by_alias=True, exclude_none=True) for c in choices],
        "ending": ending,
    }


@router.post("/start")
async def start(body: SourceBody):
    """Start a new session at the story's start scene."""
    game = compile_source(body.source)
    return session_view(game, start_session(game))


@router.post("/choose")
async def take_choice(body: ChooseBody):
    """Take the choice at ``index`` in the current scene."""
    game = compile_source(body.source)
    try:
        session = choose(game, body.session, body.index)
    except ChoiceError as e:
        raise HTTPException(409, str(e))
    return session_view(game, session)


@router.post("/undo")
async def undo_choice(body: UndoBody):
    """Step back to the previous scene and state."""
    game = compile_source(body.source)
    try:
        session = undo(body.session)
    except ChoiceError as e:
        raise HTTPException(409, str(e))
    return session_view(game, session)
