from partyarcade.services.session.minigame import EndReason, MiniGame
from partyarcade.services.session.tutorial import hybrid_tutorial


class PlumberGame(MiniGame):
    """Plug the leaks before the room floods.

    ``repair`` is sent when a tracked hand covers a leak and the repair key
    is pressed. Open leaks raise the water; there is no winning, only
    lasting longer.
    """

    game_id = 'plumber'
    resources = ('camera', 'hand_model')

    SPAWN_INTERVAL = 2.0
    MIN_SPAWN_INTERVAL = 0.5
    INTERVAL_STEP = 0.25
    REPAIRS_PER_LEVEL = 5
    RISE_PER_LEAK = 3.0     # percent per second
    REPAIR_DRAIN = 10.0
    POINTS_PER_REPAIR = 10
    FLOODED = 100.0

    @classmethod
    def get_tutorial(cls):
        return hybrid_tutorial(
            'Plumber Game',
            'Plug the water leaks with your hands before the room floods!',
            tip='Work as a team: one player places the hands, the other presses the key!',
        )

    def reset(self):
        self.leaks = 0
        self.repaired = 0
        self.difficulty = 1
        self.water_level = 0.0
        self.spawn_interval = self.SPAWN_INTERVAL
        self.spawn_timer = self.SPAWN_INTERVAL

    def update(self, dt):
        if not self.is_running:
            return
        if self.water_level >= self.FLOODED:
            self.end(EndReason.FAILED)
            return

        self.spawn_timer -= dt
        if self.spawn_timer <= 0:
            self.leaks += 1
            level = self.repaired // self.REPAIRS_PER_LEVEL + 1
            if self.repaired % self.REPAIRS_PER_LEVEL == 0 and level > self.difficulty:
                self.difficulty = level
                self.orchestrator.increase_level()
                self.spawn_interval = max(
                    self.MIN_SPAWN_INTERVAL,
                    self.SPAWN_INTERVAL - self.difficulty * self.INTERVAL_STEP,
                )
            self.spawn_timer += self.spawn_interval

        if self.leaks:
            self.water_level = min(self.FLOODED, self.water_level + self.leaks * self.RISE_PER_LEAK * dt)

    def on_input(self, action, **data):
        if action != 'repair' or not self.leaks:
            return
        self.leaks -= 1
        self.repaired += 1
        self.add_score(self.POINTS_PER_REPAIR)
        self.water_level = max(0.0, self.water_level - self.REPAIR_DRAIN)
