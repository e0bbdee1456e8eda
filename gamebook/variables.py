"""Initial-state helpers: plain scalars vs. variables with metadata."""

from typing import Any

from gamebook.models import GameState, RuntimeState, VariableMeta


def is_variable_meta(value: Any) -> bool:
    """True for a ``VariableMeta`` or a raw mapping carrying a ``value`` key."""
    if isinstance(value, VariableMeta):
        return True
    return isinstance(value, dict) and "value" in value


def extract_runtime_state(state: GameState) -> RuntimeState:
    """Flatten an initial state into the scalar form the evaluator works on."""
    runtime: RuntimeState = {}
    for key, val in state.items():
        if isinstance(val, VariableMeta):
            runtime[key] = val.value
        elif isinstance(val, dict) and "value" in val:
            runtime[key] = val["value"]
        else:
            runtime[key] = val
    return runtime


def get_variable_meta(state: GameState, key: str) -> VariableMeta | None:
    """Return the metadata of ``key``, or None when it is a plain scalar/missing."""
    val = state.get(key)
    if isinstance(val, VariableMeta):
        return val
    if isinstance(val, dict) and "value" in val:
        return VariableMeta.model_validate(val)
    return None


def get_visible_variables(state: GameState) -> list[tuple[str, VariableMeta]]:
    """All variables flagged ``visible``, in declaration order."""
    result: list[tuple[str, VariableMeta]] = []
    for key in state:
        meta = get_variable_meta(state, key)
        if meta is not None and meta.visible:
            result.append((key, meta))
    return result
