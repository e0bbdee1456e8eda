"""Parse, stringify, validate and playable-projection endpoints."""

from fastapi import APIRouter, HTTPException

from gamebook.config import get_config
from gamebook.models import Game
from gamebook.parser import parse
from gamebook.playable import to_serializable_playable_game
from gamebook.serializer import stringify
from gamebook.validator import ValidationIssue, game_stats, has_errors, validate_game, validate_script

from .models import ParseBody, SourceBody

router = APIRouter()


def compile_source(source: str, strict: bool | None = None) -> Game:
    """Parse or fail the request with 400 and the parser's message."""
    if strict is None:
        strict = get_config()["strict"]
    result = parse(source, strict=strict)
    if not result.success:
        raise HTTPException(400, result.error)
    return result.data


@router.post("/parse")
async def parse_game(body: ParseBody):
    """Compile DSL source into game JSON."""
    game = compile_source(body.source, body.strict)
    return game.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/stringify")
async def stringify_game(game: Game):
    """Render game JSON back into DSL source."""
    return {"source": stringify(game)}


@router.post("/validate")
async def validate(body: SourceBody):
    """Lint DSL source: YAML blocks, references, orphans and statistics."""
    issues = validate_script(body.source)
    result = parse(body.source)
    stats = None
    if result.success:
        issues.extend(validate_game(result.data))
        stats = game_stats(result.data)
    else:
        issues.append(ValidationIssue(severity="error", message=result.error))
    return {"valid": not has_errors(issues), "issues": issues, "stats": stats}


@router.post("/playable")
async def playable(body: SourceBody):
    """Compile DSL source into the client-safe playable form."""
    return to_serializable_playable_game(compile_source(body.source))
