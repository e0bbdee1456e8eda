"""Authoring ``Game`` → ``PlayableGame``.

The playable form is what a player client downloads. It keeps everything
needed to render and run the story and nothing that belongs to the editor
or the generation pipeline: no prompts, no AI style, no character
descriptions or voices.
"""

from typing import Any

from gamebook.models import (
    AIAudioNode,
    AIImageNode,
    AIVideoNode,
    Game,
    MinigameNode,
    PlayableAIAudioNode,
    PlayableAIImageNode,
    PlayableAIVideoNode,
    PlayableCharacter,
    PlayableGame,
    PlayableMinigameNode,
    PlayableScene,
    PlayableSceneNode,
    Scene,
    SceneNode,
    VariableMeta,
)


def to_playable_node(node: SceneNode) -> PlayableSceneNode:
    if isinstance(node, AIImageNode):
        return PlayableAIImageNode(url=node.url, alt=node.character)
    if isinstance(node, AIAudioNode):
        return PlayableAIAudioNode(audio_type=node.audio_type, url=node.url)
    if isinstance(node, AIVideoNode):
        return PlayableAIVideoNode(url=node.url)
    if isinstance(node, MinigameNode):
        names = list(node.variables) if node.variables else None
        return PlayableMinigameNode(url=node.url, variables=names)
    # text, static media and choices are already client-safe
    return node.model_copy(deep=True)


def to_playable_scene(scene: Scene) -> PlayableScene:
    return PlayableScene(id=scene.id, nodes=[to_playable_node(n) for n in scene.nodes])


def to_playable_game(game: Game) -> PlayableGame:
    """Project an authoring game onto its playable form."""
    characters = None
    if game.ai.characters:
        characters = {
            char_id: PlayableCharacter(name=char.name, image_url=char.image_url)
            for char_id, char in game.ai.characters.items()
        }

    return PlayableGame(
        slug=game.slug,
        title=game.title,
        description=game.description,
        background_story=game.background_story,
        cover_image=game.cover_image,
        tags=list(game.tags),
        initial_state={
            key: val.model_copy(deep=True) if isinstance(val, VariableMeta) else val
            for key, val in game.initial_state.items()
        },
        characters=characters,
        scenes={scene_id: to_playable_scene(scene) for scene_id, scene in game.scenes.items()},
        start_scene_id=game.start_scene_id,
    )


def to_serializable_playable_game(game: Game | PlayableGame) -> dict[str, Any]:
    """JSON-ready dict of the playable form, using the camelCase wire names."""
    playable = game if isinstance(game, PlayableGame) else to_playable_game(game)
    return playable.model_dump(mode="json", by_alias=True, exclude_none=True)


def from_serializable_playable_game(data: dict[str, Any]) -> PlayableGame:
    """Inverse of ``to_serializable_playable_game``."""
    return PlayableGame.model_validate(data)
