"""Runtime expression evaluator.

Three pure functions over a flat runtime state:

  evaluate_condition   "gold >= 10", "has_key", "name == 'Hero'"  → bool
  execute_set          "gold = gold - 5, has_key = true"          → new state
  interpolate_variables "You have {{gold}} gold."                 → str
                        "{{ if has_key }}open{{ else }}shut{{ /if }}"

Conditions and set instructions are read by a small hand-written tokenizer
rather than regexes: operators are matched longest-first at each position
(``>=`` before ``>``) and quoted strings are never split.

Equality follows the DSL's untyped literal style, i.e. JavaScript loose
equality: ``1 == "1"`` and ``true == 1`` hold. Relational operators coerce both
sides to numbers. Nothing here raises on bad input; problems are logged and a
safe default is returned (False for conditions, unchanged values for bad
assignments).
"""

import logging
import math
import re
from typing import Any

from gamebook.models import RuntimeState, Scalar

logger = logging.getLogger(__name__)

COMPARISON_OPERATORS = ("==", "!=", ">=", "<=", ">", "<")
_QUOTES = ("'", '"')

_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_PREFIXED_INT_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[bB][01]+|[oO][0-7]+)$")
_IDENTIFIER_RE = re.compile(r"^\w+$", re.ASCII)
_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}", re.ASCII)
_CONDITIONAL_RE = re.compile(
    r"\{\{\s*if\s+(?P<cond>[^\n]+?)\s*\}\}(?P<then>.*?)"
    r"(?:\{\{\s*else\s*\}\}(?P<else>.*?))?\{\{\s*/if\s*\}\}",
    re.IGNORECASE | re.DOTALL,
)


# ── JavaScript value semantics ───────────────────────────


def parse_number_literal(token: str) -> int | float | None:
    """Parse a numeric literal the way ``Number(token)`` would, or None."""
    text = token.strip()
    if _INTEGER_RE.match(text):
        return int(text)
    if _DECIMAL_RE.match(text):
        return float(text)
    if _PREFIXED_INT_RE.match(text):
        return int(text, 0)
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    return None


def is_number(value: Any) -> bool:
    """True for ints and floats; booleans are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> float:
    """ToNumber coercion: bools → 0/1, strings parsed ("" → 0), else NaN."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        number = parse_number_literal(text)
        return math.nan if number is None else float(number)
    return math.nan


def loose_equals(left: Any, right: Any) -> bool:
    """Loose (``==``) equality between two resolved operands.

    A missing variable (None) only equals another missing variable. Booleans
    are compared as numbers against anything that is not a boolean, and a
    number compared with a string compares against the string's numeric value.
    """
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, bool) and isinstance(right, bool):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if is_number(left) and is_number(right):
        return left == right
    if isinstance(left, bool):
        return loose_equals(to_number(left), right)
    if isinstance(right, bool):
        return loose_equals(left, to_number(right))
    if is_number(left) and isinstance(right, str):
        return left == to_number(right)
    if isinstance(left, str) and is_number(right):
        return to_number(left) == right
    return False


def js_truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def js_string(value: Any) -> str:
    """Render a value like ``String(value)``: ``true``, ``15``, ``1.5``."""
    if value is None:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


# ── Tokenizer ────────────────────────────────────────────


def split_top_level(text: str, separators: tuple[str, ...]) -> list[str]:
    """Split ``text`` on any of ``separators`` that occur outside quotes."""
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    i = 0
    while i < len(text):
        ch = text[i]
        if quote is not None:
            current.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in _QUOTES:
            quote = ch
            current.append(ch)
            i += 1
            continue
        for sep in separators:
            if text.startswith(sep, i):
                parts.append("".join(current))
                current = []
                i += len(sep)
                break
        else:
            current.append(ch)
            i += 1
    parts.append("".join(current))
    return parts


def tokenize_condition(condition: str) -> list[tuple[str, str]]:
    """Tokenize a single comparison into ``("operand", text)``/``("op", text)``.

    Empty operands are dropped, so ``"== 5"`` yields two tokens and is then
    rejected as an unsupported shape.
    """
    tokens: list[tuple[str, str]] = []
    current: list[str] = []
    quote: str | None = None

    def flush() -> None:
        operand = "".join(current).strip()
        current.clear()
        if operand:
            tokens.append(("operand", operand))

    i = 0
    while i < len(condition):
        ch = condition[i]
        if quote is not None:
            current.append(ch)
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in _QUOTES:
            quote = ch
            current.append(ch)
            i += 1
            continue
        op = next((o for o in COMPARISON_OPERATORS if condition.startswith(o, i)), None)
        if op is not None:
            flush()
            tokens.append(("op", op))
            i += len(op)
            continue
        current.append(ch)
        i += 1
    flush()
    return tokens


def split_conditions(condition: str) -> list[str]:
    """Split a condition on ``&&`` and top-level commas (all must hold)."""
    return [c.strip() for c in split_top_level(condition, ("&&", ",")) if c.strip()]


def parse_statement(statement: str) -> tuple[str, str] | None:
    """Split ``key = expression``; None unless there is exactly one ``=``."""
    sides = split_top_level(statement, ("=",))
    if len(sides) != 2:
        return None
    key, expression = sides[0].strip(), sides[1].strip()
    if not _IDENTIFIER_RE.match(key) or not expression:
        return None
    return key, expression


def split_arithmetic(expression: str) -> tuple[str, str, str] | None:
    """Find ``operand (+|-) operand``; the first operand must be non-empty.

    A bare numeric literal such as ``-5`` or ``1e-3`` is never split.
    """
    if parse_number_literal(expression) is not None:
        return None
    quote: str | None = None
    for i, ch in enumerate(expression):
        if quote is not None:
            if ch == quote:
                quote = None
            continue
        if ch in _QUOTES:
            quote = ch
            continue
        if ch in "+-" and expression[:i].strip():
            right = expression[i + 1:].strip()
            if not right:
                return None
            return expression[:i].strip(), ch, right
    return None


# ── Public API ───────────────────────────────────────────


def get_value(token: str, state: RuntimeState) -> Scalar | None:
    """Resolve an operand: boolean, number, quoted string, or state lookup."""
    if token == "true":
        return True
    if token == "false":
        return False
    number = parse_number_literal(token)
    if number is not None:
        return number
    for quote in _QUOTES:
        if token.startswith(quote) and token.endswith(quote):
            return token[1:-1]
    if token in state:
        return state[token]
    return None


def evaluate_condition(condition: str | None, state: RuntimeState) -> bool:
    """Evaluate a choice/trigger condition. Empty conditions are always true."""
    if not condition or not condition.strip():
        return True

    subconditions = split_conditions(condition)
    if len(subconditions) > 1:
        return all(evaluate_condition(sub, state) for sub in subconditions)

    tokens = tokenize_condition(condition)
    kinds = [kind for kind, _ in tokens]

    if kinds == ["operand"]:
        return js_truthy(get_value(tokens[0][1], state))

    if kinds == ["operand", "op", "operand"]:
        left = get_value(tokens[0][1], state)
        op = tokens[1][1]
        right = get_value(tokens[2][1], state)
        if op == "==":
            return loose_equals(left, right)
        if op == "!=":
            return not loose_equals(left, right)
        x, y = to_number(left), to_number(right)
        if math.isnan(x) or math.isnan(y):
            return False
        if op == ">":
            return x > y
        if op == "<":
            return x < y
        if op == ">=":
            return x >= y
        return x <= y

    logger.warning(f"Unsupported condition format: {condition}")
    return False


def execute_set(instruction: str | None, state: RuntimeState) -> RuntimeState:
    """Apply a set instruction, returning a new state.

    Without an instruction the very same ``state`` object is returned.
    Statements run left to right on one working copy, so later statements
    see earlier assignments. The input mapping is never modified.
    """
    if not instruction:
        return state

    new_state = dict(state)
    for raw in split_top_level(instruction, (",",)):
        stmt = raw.strip()
        if not stmt:
            continue
        parsed = parse_statement(stmt)
        if parsed is None:
            logger.warning(f"Invalid set statement: {stmt}")
            continue
        key, expression = parsed

        arithmetic = split_arithmetic(expression)
        if arithmetic is not None:
            op1_raw, operator, op2_raw = arithmetic
            op1 = get_value(op1_raw, new_state)
            op2 = get_value(op2_raw, new_state)
            if is_number(op1) and is_number(op2):
                new_state[key] = op1 + op2 if operator == "+" else op1 - op2
            else:
                logger.warning(f"Invalid arithmetic operands in: {stmt}")
            continue

        value = get_value(expression, new_state)
        if value is None:
            logger.warning(f"Cannot assign undefined value in: {stmt}")
            continue
        new_state[key] = value

    return new_state


def interpolate_variables(text: str, state: RuntimeState) -> str:
    """Fill in ``text`` from ``state``.

    Conditional blocks go first: ``{{ if has_key }}open{{ else }}locked{{ /if }}``
    keeps one branch (the else part is optional). Then ``{{name}}`` becomes
    the state value; unknown names stay verbatim. Blocks do not nest.
    """
    if not text:
        return text

    def _branch(match: re.Match) -> str:
        if evaluate_condition(match.group("cond"), state):
            return match.group("then")
        return match.group("else") or ""

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name in state:
            return js_string(state[name])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_replace, _CONDITIONAL_RE.sub(_branch, text))


# ── Static checks (used by the validator) ────────────────


def check_condition(condition: str) -> str | None:
    """Return a problem description if ``condition`` cannot be evaluated."""
    for sub in split_conditions(condition):
        kinds = [kind for kind, _ in tokenize_condition(sub)]
        if kinds not in (["operand"], ["operand", "op", "operand"]):
            return f"Unsupported condition format: {sub}"
    return None


def check_set(instruction: str) -> list[str]:
    """Return one problem description per malformed statement."""
    problems: list[str] = []
    for raw in split_top_level(instruction, (",",)):
        stmt = raw.strip()
        if stmt and parse_statement(stmt) is None:
            problems.append(f"Invalid set statement: {stmt}")
    return problems
