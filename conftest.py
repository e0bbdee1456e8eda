import pytest

from gamebook.parser import parse

STORY_SOURCE = """---
title: The Forest Path
description: A short walk in the woods.
tags:
  - fantasy
state:
  gold: 10
  has_key: false
  health:
    value: 3
    visible: true
    label: Health
    trigger:
      condition: "<= 0"
      scene: death
ai:
  style:
    image: watercolor
  characters:
    red:
      name: Little Red
      image_prompt: a girl in a red hood
      image_url: https://example.com/red.png
    wolf: Big Bad Wolf
---

# start
@red stands at the edge of the forest with {{gold}} gold.

```image-gen
prompt: a dark forest path
character: red
```

* [Enter the forest] -> forest (set: health = health - 1)
* [Open the gate] -> gate (if: has_key == true)

---

# forest
The trees close in. @wolf watches.

```audio-gen
type: background_music
prompt: low strings
```

* [Pay the toll] -> start (if: gold >= 5) (set: gold = gold - 5, health = health - 1)
* [Run] -> start (set: health = health - 3)

---

# gate
You made it through.

---

# death
The forest claims you.
"""


@pytest.fixture
def story_source() -> str:
    """A small four-scene story using state, triggers, characters and AI blocks."""
    return STORY_SOURCE


@pytest.fixture
def story(story_source):
    result = parse(story_source)
    assert result.success, getattr(result, "error", "")
    return result.data
