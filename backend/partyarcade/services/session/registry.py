import inspect
from typing import Dict, List, Type

from .minigame import MiniGame


class UnknownGameError(KeyError):
    pass


class GameRegistry:
    """Mini-game classes keyed by id, in registration order."""

    def __init__(self) -> None:
        self._games: Dict[str, Type[MiniGame]] = {}

    def register(self, game_cls: Type[MiniGame], game_id: str = None) -> Type[MiniGame]:
        game_id = game_id or getattr(game_cls, 'game_id', None)
        if not game_id:
            raise ValueError(f'{game_cls!r} has no game id')
        if not (inspect.isclass(game_cls) and issubclass(game_cls, MiniGame)):
            raise TypeError(f'{game_id}: {game_cls!r} is not a MiniGame')
        if inspect.isabstract(game_cls):
            raise TypeError(f'{game_id}: {game_cls.__name__} does not implement the full lifecycle')
        if game_id in self._games:
            raise ValueError(f'Game already registered: {game_id}')
        self._games[game_id] = game_cls
        return game_cls

    def get(self, game_id: str) -> Type[MiniGame]:
        try:
            return self._games[game_id]
        except KeyError:
            raise UnknownGameError(game_id) from None

    def create(self, game_id: str, orchestrator, **kwargs) -> MiniGame:
        return self.get(game_id)(orchestrator, **kwargs)

    def ids(self) -> List[str]:
        return list(self._games)

    def validate(self) -> None:
        """Check every registered game can describe itself before anyone plays it."""
        if not self._games:
            raise ValueError('No mini-games registered')
        for game_id, game_cls in self._games.items():
            tutorial = game_cls.get_tutorial()
            if not tutorial.title or not tutorial.html:
                raise ValueError(f'{game_id}: tutorial needs a title and a body')

    def __contains__(self, game_id) -> bool:
        return game_id in self._games

    def __len__(self) -> int:
        return len(self._games)
