"""Line-level tokenizer: front matter, scene headers and body blocks.

This stage knows the surface syntax only. It cuts the document into a YAML
front-matter string and a list of raw scenes, each an ordered list of
``Block``s. Turning blocks into typed nodes happens in ``parser.core``.

Body syntax recognised per line:

  # scene_id                          scene header
  ---                                 scene separator (a rule when inside text)
  ```image-gen ... ```                generation block (also audio-, video-,
                                      minigame-gen); any other fence is text
  * [Text] -> target (if: c) (set: s) (audio: url)
  ![alt](url)   [audio](url)   [video](url)
  <!-- audio: url -->                 narration audio for the next text
  anything else                       text, merged with neighbouring lines
"""

import logging
import re

from pydantic import BaseModel, Field

from gamebook.errors import DSLSyntaxError

logger = logging.getLogger(__name__)

FRONT_MATTER_DELIMITER = "---"
SCENE_SEPARATOR = "---"
FENCE = "```"
GENERATION_FENCES = ("image-gen", "audio-gen", "video-gen", "minigame-gen")

SCENE_HEADER_RE = re.compile(r"^# ([\w-]+)\s*$", re.ASCII)
CHOICE_RE = re.compile(r"^\*\s+\[(?P<text>.*?)\]\s*->\s*(?P<target>[\w-]+)(?P<rest>.*)$", re.ASCII)
CLAUSE_START_RE = re.compile(r"\((?P<name>if|set|audio):\s*")
STATIC_IMAGE_RE = re.compile(r"^!\[(?P<alt>[^\]]*)\]\((?P<url>[^)\s]+)\)$")
STATIC_MEDIA_RE = re.compile(r"^\[(?P<kind>audio|video)\]\((?P<url>[^)\s]+)\)$")
AUDIO_COMMENT_RE = re.compile(r"^<!--\s*audio:\s*(?P<url>\S+)\s*-->$")


class Block(BaseModel):
    """One body construct. ``line`` is 1-based in the whole document."""

    kind: str  # text | fence | choice | static_image | static_audio | static_video | audio_comment
    line: int
    content: str = ""
    fields: dict[str, str] = Field(default_factory=dict)


class RawScene(BaseModel):
    id: str
    line: int
    blocks: list[Block] = Field(default_factory=list)


def split_front_matter(source: str) -> tuple[str, str, int]:
    """Return (front matter YAML, body, 1-based line number where body starts)."""
    lines = source.lstrip("\ufeff").replace("\r\n", "\n").split("\n")
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start >= len(lines) or lines[start].strip() != FRONT_MATTER_DELIMITER:
        raise DSLSyntaxError("YAML front matter is missing or invalid")

    for end in range(start + 1, len(lines)):
        if lines[end].strip() == FRONT_MATTER_DELIMITER:
            front_matter = "\n".join(lines[start + 1:end])
            body = "\n".join(lines[end + 1:])
            return front_matter, body, end + 2
    raise DSLSyntaxError("YAML front matter is missing or invalid")


def parse_choice_clauses(rest: str) -> tuple[dict[str, str], str]:
    """Pull ``(if: ...)``/``(set: ...)``/``(audio: ...)`` clauses out of ``rest``.

    Parentheses nest and quoted text is opaque, so ``(set: x = 'a (b)')`` is a
    single clause. Returns the clauses and whatever text could not be read.
    """
    clauses: dict[str, str] = {}
    leftover: list[str] = []
    i = 0
    while i < len(rest):
        match = CLAUSE_START_RE.match(rest, i)
        if match is None:
            leftover.append(rest[i])
            i += 1
            continue
        depth = 1
        quote: str | None = None
        j = match.end()
        while j < len(rest) and depth:
            ch = rest[j]
            if quote is not None:
                if ch == quote:
                    quote = None
            elif ch in ("'", '"'):
                quote = ch
            elif ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
            j += 1
        if depth:
            leftover.append(rest[i:])
            break
        clauses[match.group("name")] = rest[match.end():j - 1].strip()
        i = j
    return clauses, "".join(leftover).strip()


def _match_line(stripped: str, line_no: int) -> Block | None:
    """Match the single-line constructs; None means plain text."""
    match = CHOICE_RE.match(stripped)
    if match:
        clauses, leftover = parse_choice_clauses(match.group("rest"))
        if leftover:
            logger.warning(f"Ignoring unrecognised text after choice on line {line_no}: {leftover}")
        return Block(
            kind="choice",
            line=line_no,
            fields={"text": match.group("text"), "target": match.group("target"), **clauses},
        )

    match = STATIC_IMAGE_RE.match(stripped)
    if match:
        return Block(kind="static_image", line=line_no, fields=match.groupdict())

    match = STATIC_MEDIA_RE.match(stripped)
    if match:
        return Block(kind=f"static_{match.group('kind')}", line=line_no, fields={"url": match.group("url")})

    match = AUDIO_COMMENT_RE.match(stripped)
    if match:
        return Block(kind="audio_comment", line=line_no, fields={"url": match.group("url")})

    return None


def extract_scenes(body: str, first_line: int = 1) -> list[RawScene]:
    """Walk the body line by line and group blocks under their scene headers."""
    scenes: list[RawScene] = []
    current: RawScene | None = None
    text_lines: list[str] = []
    text_start = 0
    fence_type: str | None = None  # open generation fence
    fence_lines: list[str] = []
    fence_start = 0
    in_plain_fence = False  # open non-generation fence, kept as text
    warned_preamble = False

    def flush_text() -> None:
        nonlocal text_lines
        # a trailing separator ends the scene; inside text it is a markdown rule
        while text_lines and text_lines[-1].strip() in ("", SCENE_SEPARATOR):
            text_lines.pop()
        content = "\n".join(text_lines).strip()
        if content and current is not None:
            current.blocks.append(Block(kind="text", line=text_start, content=content))
        text_lines = []

    def add_text(line: str, line_no: int) -> None:
        nonlocal text_start
        if not text_lines:
            text_start = line_no
        text_lines.append(line)

    for offset, line in enumerate(body.split("\n")):
        line_no = first_line + offset
        stripped = line.strip()

        if fence_type is not None:
            if stripped == FENCE:
                current.blocks.append(Block(
                    kind="fence", line=fence_start,
                    content="\n".join(fence_lines), fields={"fence": fence_type},
                ))
                fence_type = None
                fence_lines = []
            else:
                fence_lines.append(line)
            continue

        if in_plain_fence:
            add_text(line, line_no)
            if stripped == FENCE:
                in_plain_fence = False
            continue

        header = SCENE_HEADER_RE.match(line)
        if header:
            flush_text()
            current = RawScene(id=header.group(1), line=line_no)
            scenes.append(current)
            continue

        if current is None:
            if stripped and not warned_preamble:
                logger.warning(f"Ignoring content before the first scene header (line {line_no})")
                warned_preamble = True
            continue

        if stripped == SCENE_SEPARATOR:
            if text_lines:
                add_text(line, line_no)
            continue

        if stripped.startswith(FENCE):
            info = stripped[len(FENCE):].strip()
            if info in GENERATION_FENCES:
                flush_text()
                fence_type = info
                fence_start = line_no
                continue
            in_plain_fence = True
            add_text(line, line_no)
            continue

        block = _match_line(stripped, line_no) if stripped else None
        if block is not None:
            flush_text()
            current.blocks.append(block)
            continue

        if stripped or text_lines:
            add_text(line, line_no)

    if fence_type is not None:
        raise DSLSyntaxError(
            f"Unclosed {FENCE}{fence_type} block",
            scene_id=current.id, line=fence_start, block_type=fence_type,
        )
    flush_text()
    return scenes
