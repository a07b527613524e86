from partyarcade.services.session.minigame import EndReason, MiniGame
from partyarcade.services.session.tutorial import hybrid_tutorial


class CowboyDuelGame(MiniGame):
    """Reaction duel: shutters close, an outlaw appears, shoot before the gauge fills.

    The hand tracker aims; ``shoot`` carries whether the crosshair was on
    the target. Each won round shortens the reaction window. The first
    miss (or timeout) ends the duel, which always counts as completed.
    """

    game_id = 'cowboy-duel'
    resources = ('camera', 'hand_model', 'audio')

    START_TIME = 5.0
    TIME_DECREMENT = 0.5
    MIN_TIME = 1.0
    WAITING_DURATION = 1.0
    READY_RANGE = (2.0, 4.0)
    HIT_DURATION = 1.0
    MISS_DURATION = 1.5
    POINTS_PER_HIT = 100

    @classmethod
    def get_tutorial(cls):
        return hybrid_tutorial(
            'Cowboy Duel',
            'Draw faster than your opponent! Aim with your hand and shoot with SPACE or ARROW keys.',
            tip='The more cowboys you eliminate, the less time you have to react. Stay focused!',
        )

    def reset(self):
        self.round = 0
        self.cowboys_killed = 0
        self.start_new_round()

    def start_new_round(self):
        self.round += 1
        self.game_phase = 'waiting'
        self.phase_timer = 0.0
        self.time_gauge = 0.0
        self.ready_duration = self.rng.uniform(*self.READY_RANGE)
        self.max_time = max(self.MIN_TIME, self.START_TIME - (self.round - 1) * self.TIME_DECREMENT)

    def _enter(self, phase):
        self.game_phase = phase
        self.phase_timer = 0.0

    def update(self, dt):
        if not self.is_running:
            return
        self.phase_timer += dt
        phase = self.game_phase
        if phase == 'waiting' and self.phase_timer >= self.WAITING_DURATION:
            self._enter('ready')
        elif phase == 'ready' and self.phase_timer >= self.ready_duration:
            self._enter('shooting')
        elif phase == 'shooting':
            self.time_gauge += dt
            if self.time_gauge >= self.max_time:
                # Too slow
                self._enter('miss')
        elif phase == 'hit' and self.phase_timer >= self.HIT_DURATION:
            self.start_new_round()
        elif phase == 'miss' and self.phase_timer >= self.MISS_DURATION:
            self.end(EndReason.COMPLETED)

    def on_input(self, action, **data):
        if action != 'shoot' or self.game_phase != 'shooting':
            return
        if data.get('on_target'):
            self.cowboys_killed += 1
            self.add_score(self.POINTS_PER_HIT)
            self._enter('hit')
        else:
            self._enter('miss')
