"""Expression endpoints: conditions, set instructions, interpolation."""

from fastapi import APIRouter

from gamebook.evaluator import evaluate_condition, execute_set, interpolate_variables

from .models import EvaluateBody, ExecuteBody, InterpolateBody

router = APIRouter()


@router.post("/evaluate")
async def evaluate(body: EvaluateBody):
    """Evaluate a condition against a runtime state."""
    return {"result": evaluate_condition(body.condition, body.state)}


@router.post("/execute")
async def execute(body: ExecuteBody):
    """Apply a set instruction, returning the new state."""
    return {"state": execute_set(body.instruction, body.state)}


@router.post("/interpolate")
async def interpolate(body: InterpolateBody):
    """Fill ``{{name}}`` placeholders from the state."""
    return {"text": interpolate_variables(body.text, body.state)}
