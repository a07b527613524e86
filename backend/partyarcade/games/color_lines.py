from collections import deque

from partyarcade.services.session.minigame import EndReason, MiniGame
from partyarcade.services.session.tutorial import makey_makey_tutorial

LANES = ('star', 'circle', 'rectangle', 'triangle')


class Line:
    __slots__ = ('lane', 'width', 'age', 'colored', 'wrong_lane')

    def __init__(self, lane, width):
        self.lane = lane
        self.width = width
        self.age = 0.0
        self.colored = False
        self.wrong_lane = False


class ColorLinesGame(MiniGame):
    """Rhythm lanes: grey bars arrive on the beat, hold the matching lane to color them."""

    game_id = 'color-lines'
    resources = ('audio',)

    BPM = 160
    BEATS_PER_SPAWN = 4
    LINE_TRAVEL = 3.0
    WIDTH_RANGE = (150, 400)
    MAX_LIVES = 3
    GAME_OVER_DELAY = 1.5

    @classmethod
    def get_tutorial(cls):
        return makey_makey_tutorial(
            'Color Lines',
            'Use arrow keys to select a lane and HOLD the key to color the grey bars coming from the right!',
            tip='Up = star (orange), right = circle (green), down = rectangle (blue), '
                'left = triangle (red). Only one key active at a time!',
        )

    @property
    def spawn_interval(self):
        return 60.0 / self.BPM * self.BEATS_PER_SPAWN

    def reset(self):
        self.lives = self.MAX_LIVES
        self.combo = 0
        self.max_combo = 0
        self.lines = deque()
        self.spawn_timer = self.spawn_interval
        self.game_phase = 'playing'
        self.game_over_timer = 0.0

    def _lose_life(self):
        self.lives -= 1
        self.combo = 0
        if self.lives <= 0:
            self.game_phase = 'gameover'

    def update(self, dt):
        if not self.is_running:
            return
        if self.game_phase == 'gameover':
            self.game_over_timer += dt
            if self.game_over_timer >= self.GAME_OVER_DELAY:
                self.end(EndReason.COMPLETED)
            return

        self.spawn_timer -= dt
        if self.spawn_timer <= 0:
            lane = self.rng.randrange(len(LANES))
            self.lines.append(Line(lane, self.rng.uniform(*self.WIDTH_RANGE)))
            self.spawn_timer += self.spawn_interval

        for line in self.lines:
            line.age += dt
        while self.lines and self.lines[0].age >= self.LINE_TRAVEL:
            line = self.lines.popleft()
            if not line.colored and not line.wrong_lane:
                self._lose_life()
                if self.game_phase == 'gameover':
                    return

    def on_input(self, action, **data):
        if action != 'color' or self.game_phase != 'playing':
            return
        line = next((l for l in self.lines if not l.colored and not l.wrong_lane), None)
        if line is None:
            return
        if data.get('lane') == line.lane:
            line.colored = True
            self.combo += 1
            self.max_combo = max(self.max_combo, self.combo)
            self.add_score(round(10 * (line.width / 100) * self.combo))
        else:
            line.wrong_lane = True
            self._lose_life()
