"""Tests for gamebook.parser.parse."""

import pytest

from gamebook.models import (
    AIAudioNode,
    AIImageNode,
    AIVideoNode,
    ChoiceNode,
    MinigameNode,
    ParseFailure,
    StaticAudioNode,
    StaticImageNode,
    StaticVideoNode,
    TextNode,
    VariableMeta,
)
from gamebook.parser import parse


def _game(source: str):
    result = parse(source)
    assert result.success, getattr(result, "error", "")
    return result.data


def _error(source: str, **kwargs) -> str:
    result = parse(source, **kwargs)
    assert isinstance(result, ParseFailure)
    return result.error


class TestStory:
    def test_metadata(self, story) -> None:
        assert story.title == "The Forest Path"
        assert story.description == "A short walk in the woods."
        assert story.tags == ["fantasy"]
        assert story.published is False
        assert story.start_scene_id == "start"

    def test_initial_state(self, story) -> None:
        assert story.initial_state["gold"] == 10
        assert story.initial_state["has_key"] is False
        health = story.initial_state["health"]
        assert isinstance(health, VariableMeta)
        assert health.value == 3
        assert health.visible is True
        assert health.trigger.condition == "<= 0"
        assert health.trigger.scene == "death"

    def test_ai_config(self, story) -> None:
        assert story.ai.style == {"image": "watercolor"}
        assert story.ai.characters["red"].name == "Little Red"
        assert story.ai.characters["red"].image_url == "https://example.com/red.png"
        # shorthand form
        assert story.ai.characters["wolf"].name == "Big Bad Wolf"

    def test_scene_order(self, story) -> None:
        assert list(story.scenes) == ["start", "forest", "gate", "death"]
        assert story.scenes["gate"].id == "gate"

    def test_node_order_is_authoring_order(self, story) -> None:
        nodes = story.scenes["start"].nodes
        assert [type(n) for n in nodes] == [TextNode, AIImageNode, ChoiceNode, ChoiceNode]
        assert nodes[0].content == "@red stands at the edge of the forest with {{gold}} gold."
        assert nodes[1].prompt == "a dark forest path"
        assert nodes[1].character == "red"

    def test_choices(self, story) -> None:
        enter, gate = story.scenes["start"].nodes[2:]
        assert enter.text == "Enter the forest"
        assert enter.next_scene_id == "forest"
        assert enter.set == "health = health - 1"
        assert enter.condition is None
        assert gate.condition == "has_key == true"
        toll = story.scenes["forest"].nodes[2]
        assert toll.condition == "gold >= 5"
        assert toll.set == "gold = gold - 5, health = health - 1"

    def test_audio_block(self, story) -> None:
        audio = story.scenes["forest"].nodes[1]
        assert isinstance(audio, AIAudioNode)
        assert audio.audio_type == "background_music"
        assert audio.prompt == "low strings"
        assert audio.url is None


# ── Front matter ────────────────────────────────────────────


def test_state_accepts_initial_state_key():
    game = _game("---\ntitle: T\ninitialState:\n  gold: 1\n---\n# start\nHi")
    assert game.initial_state == {"gold": 1}


def test_legacy_background_story_key():
    game = _game("---\ntitle: T\nbackground_story: Long ago.\n---\n# start\nHi")
    assert game.background_story == "Long ago."


def test_cover_fields_and_published():
    game = _game(
        "---\ntitle: T\ncover_image: https://x/c.png\ncover_prompt: a castle\n"
        "cover_aspect_ratio: '3:2'\npublished: true\nslug: my-story\n---\n# start\nHi"
    )
    assert game.cover_image == "https://x/c.png"
    assert game.cover_prompt == "a castle"
    assert game.cover_aspect_ratio == "3:2"
    assert game.published is True
    assert game.slug == "my-story"


def test_defaults_when_absent():
    game = _game("---\ntitle: T\n---\n# start\nHi")
    assert game.tags == []
    assert game.published is False
    assert game.initial_state == {}
    assert game.ai.style is None
    assert game.ai.characters is None


def test_numeric_title_is_text():
    assert _game("---\ntitle: 1984\n---\n# start\nHi").title == "1984"


def test_empty_source():
    assert _error("") == "YAML front matter is missing or invalid"
    assert _error("   \n") == "YAML front matter is missing or invalid"


def test_missing_front_matter():
    assert _error("# start\nHello") == "YAML front matter is missing or invalid"


def test_front_matter_not_a_mapping():
    assert _error("---\n- a\n- b\n---\n# start") == "YAML front matter is missing or invalid"


def test_missing_title():
    assert _error("---\ndescription: no title\n---\n# start\nHi") == "Title is required"


def test_malformed_front_matter_yaml():
    error = _error('---\ntitle: "Bad YAML"\n  description: Indentation error\n---\n# start\n')
    assert error.startswith("YAML parsing failed")


def test_state_must_be_mapping():
    assert "Initial state" in _error("---\ntitle: T\nstate: [1, 2]\n---\n# start\nHi")


def test_invalid_variable_meta_is_a_failure():
    error = _error("---\ntitle: T\nstate:\n  hp:\n    value: 1\n    display: sparkle\n---\n# start\nHi")
    assert error.startswith("Invalid game data")


# ── Scenes ──────────────────────────────────────────────────


def test_duplicate_scene_ids_last_wins():
    source = """---
title: "Duplicate ID Test"
---
# start
First start scene.

---

# start
Second start scene.
"""
    game = _game(source)
    assert list(game.scenes) == ["start"]
    assert game.scenes["start"].nodes[0].content == "Second start scene."


def test_scene_ids_with_hyphens_underscores_numbers():
    source = """---
title: "Complex ID Test"
---
# start
* [Go] -> scene-123
* [Go] -> scene_abc
* [Go] -> 123scene

# scene-123
Hyphen.

# scene_abc
Underscore.

# 123scene
Number.
"""
    game = _game(source)
    assert list(game.scenes) == ["start", "scene-123", "scene_abc", "123scene"]
    assert [c.next_scene_id for c in game.scenes["start"].nodes] == ["scene-123", "scene_abc", "123scene"]


def test_empty_scenes():
    game = _game("---\ntitle: T\n---\n# start\nText.\n\n---\n\n# empty_one\n\n---\n\n# empty_two\n")
    assert game.scenes["empty_one"].nodes == []
    assert game.scenes["empty_two"].nodes == []


def test_dangling_target_is_allowed_by_default():
    game = _game("---\ntitle: T\n---\n# start\n* [Go] -> nowhere")
    assert game.scenes["start"].nodes[0].next_scene_id == "nowhere"


def test_missing_start_scene_is_allowed_by_default():
    game = _game("---\ntitle: T\n---\n# intro\nNot the start.")
    assert list(game.scenes) == ["intro"]


def test_interleaved_nodes_keep_order():
    source = """---
title: T
---
# start
Intro.
![Door](https://x/door.jpg)
More text.
* [Open] -> start
![Hall](https://x/hall.jpg)
"""
    nodes = _game(source).scenes["start"].nodes
    assert [n.type for n in nodes] == ["text", "static_image", "text", "choice", "static_image"]
    assert nodes[1].alt == "Door"


# ── Media and generation blocks ─────────────────────────────


def test_static_media():
    source = "---\ntitle: T\n---\n# start\n![](https://x/i.png)\n[audio](https://x/a.mp3)\n[video](https://x/v.mp4)"
    image, audio, video = _game(source).scenes["start"].nodes
    assert isinstance(image, StaticImageNode)
    assert image.url == "https://x/i.png"
    assert image.alt is None
    assert isinstance(audio, StaticAudioNode)
    assert audio.url == "https://x/a.mp3"
    assert isinstance(video, StaticVideoNode)
    assert video.url == "https://x/v.mp4"


def test_text_audio_comment():
    source = "---\ntitle: T\n---\n# start\n<!-- audio: https://x/n.wav -->\nMother said something.\nMore."
    (text,) = _game(source).scenes["start"].nodes
    assert text.content == "Mother said something.\nMore."
    assert text.audio_url == "https://x/n.wav"


def test_audio_comment_without_text_is_dropped():
    source = "---\ntitle: T\n---\n# start\n<!-- audio: https://x/n.wav -->\n* [Go] -> start"
    (choice,) = _game(source).scenes["start"].nodes
    assert choice.audio_url is None


def test_choice_audio_clause():
    source = "---\ntitle: T\n---\n# start\n* [Option] -> next (audio: https://x/c.wav)"
    (choice,) = _game(source).scenes["start"].nodes
    assert choice.audio_url == "https://x/c.wav"
    assert choice.next_scene_id == "next"


def test_image_gen_characters_list_and_string():
    source = """---
title: T
---
# start
```image-gen
prompt: two friends
characters: [red, wolf]
url: https://x/gen.png
```
```image-gen
prompt: again
characters: red, wolf
```
"""
    first, second = _game(source).scenes["start"].nodes
    assert first.characters == ["red", "wolf"]
    assert first.url == "https://x/gen.png"
    assert second.characters == ["red", "wolf"]


def test_indented_block_body_is_dedented():
    source = "---\ntitle: T\n---\n# start\n```video-gen\n  prompt: a door opens\n  url: https://x/v.mp4\n```"
    (video,) = _game(source).scenes["start"].nodes
    assert isinstance(video, AIVideoNode)
    assert video.prompt == "a door opens"
    assert video.url == "https://x/v.mp4"


def test_audio_gen_accepts_sfx():
    source = "---\ntitle: T\n---\n# start\n```audio-gen\ntype: sfx\nprompt: a creak\n```"
    (audio,) = _game(source).scenes["start"].nodes
    assert audio.audio_type == "sfx"


def test_audio_gen_requires_type():
    error = _error("---\ntitle: T\n---\n# start\n```audio-gen\nprompt: a creak\n```")
    assert "requires type" in error
    assert "scene 'start'" in error


@pytest.mark.parametrize("variables", [
    "variables:\n  - snitch_caught: number caught\n  - time_left: seconds",
    "variables:\n  snitch_caught: number caught\n  time_left: seconds",
])
def test_minigame_variables(variables):
    source = f"---\ntitle: T\n---\n# start\n```minigame-gen\nprompt: catch the snitch\n{variables}\nurl: https://x/m/1\n```"
    (node,) = _game(source).scenes["start"].nodes
    assert isinstance(node, MinigameNode)
    assert node.variables == {"snitch_caught": "number caught", "time_left": "seconds"}
    assert node.url == "https://x/m/1"


def test_generation_block_requires_prompt():
    error = _error("---\ntitle: T\n---\n# start\n```image-gen\ncharacter: red\n```")
    assert error.startswith("image-gen block requires a prompt")


def test_block_yaml_error_has_location():
    source = "---\ntitle: T\n---\n# start\nIntro.\n```image-gen\nprompt: a\n  bad: b\n```\n"
    error = _error(source)
    assert error.startswith("YAML parsing failed in image-gen block")
    assert "mapping values are not allowed here" in error
    assert error.endswith("(scene 'start', node 1, line 8)")


def test_unclosed_block():
    error = _error("---\ntitle: T\n---\n# start\n```image-gen\nprompt: a\n")
    assert error.startswith("Unclosed ```image-gen block")
    assert "line 5" in error


# ── strict mode ─────────────────────────────────────────────


def test_strict_rejects_missing_start():
    error = _error("---\ntitle: No Start\n---\n# intro\nText.", strict=True)
    assert error == 'Missing required "# start" scene'


def test_strict_rejects_dangling_target():
    error = _error("---\ntitle: T\n---\n# start\n* [Go] -> nowhere", strict=True)
    assert error == 'Referenced scene "nowhere" is not defined'


def test_strict_accepts_valid_story(story_source):
    assert parse(story_source, strict=True).success
