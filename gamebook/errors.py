"""Exception types.

``parse`` never lets these escape: ``DSLSyntaxError`` is raised inside the
parser and converted into a ``ParseFailure`` at the public boundary.
"""


class GamebookError(Exception):
    """Base gamebook error."""


class DSLSyntaxError(GamebookError):
    """Raised when DSL source cannot be compiled.

    The location fields are optional; whatever is known is appended to the
    message, e.g. ``(scene 'start', node 2, line 14)``.
    """

    def __init__(
        self,
        message: str,
        *,
        scene_id: str | None = None,
        node_index: int | None = None,
        line: int | None = None,
        block_type: str | None = None,
    ):
        self.scene_id = scene_id
        self.node_index = node_index
        self.line = line
        self.block_type = block_type
        super().__init__(_format_location(message, scene_id, node_index, line))


class ChoiceError(GamebookError):
    """Raised when a player picks a choice that is missing or not available."""


def _format_location(
    message: str, scene_id: str | None, node_index: int | None, line: int | None
) -> str:
    parts: list[str] = []
    if scene_id is not None:
        parts.append(f"scene '{scene_id}'")
    if node_index is not None:
        parts.append(f"node {node_index}")
    if line is not None:
        parts.append(f"line {line}")
    if not parts:
        return message
    return f"{message} ({', '.join(parts)})"
