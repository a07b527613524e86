"""Shipped mini-games, in series order."""

from partyarcade.services.session.registry import GameRegistry

from .wall_shapes import WallShapesGame
from .cowboy_duel import CowboyDuelGame
from .plumber import PlumberGame
from .color_lines import ColorLinesGame

ALL_GAMES = [
    WallShapesGame,
    CowboyDuelGame,
    PlumberGame,
    ColorLinesGame,
]

SERIES = tuple(game.game_id for game in ALL_GAMES)


def build_registry() -> GameRegistry:
    registry = GameRegistry()
    for game_cls in ALL_GAMES:
        registry.register(game_cls)
    return registry


__all__ = [
    'ALL_GAMES', 'SERIES', 'build_registry',
    'WallShapesGame', 'CowboyDuelGame', 'PlumberGame', 'ColorLinesGame',
]
