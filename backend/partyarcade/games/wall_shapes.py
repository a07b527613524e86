from collections import deque

from partyarcade.services.session.minigame import EndReason, MiniGame
from partyarcade.services.session.tutorial import webcam_tutorial

POSES = ('arms-up', 'arms-wide', 'squat', 'one-arm-up')


class Wall:
    __slots__ = ('pose', 'age', 'passed')

    def __init__(self, pose):
        self.pose = pose
        self.age = 0.0
        self.passed = False


class WallShapesGame(MiniGame):
    """Walls with a pose-shaped hole slide toward the player.

    The pose detector reports ``pose_held`` once the player has held the
    wall's pose long enough; a wall that leaves the screen unpassed costs
    a life.
    """

    game_id = 'wall-shapes'
    resources = ('camera', 'pose_model')

    WALLS_TO_PASS = 5
    MAX_LIVES = 3
    FIRST_WALL_DELAY = 2.0
    SPAWN_INTERVAL = 3.0
    WALL_TRAVEL = 6.0
    POINTS_PER_WALL = 100

    @classmethod
    def get_tutorial(cls):
        return webcam_tutorial(
            'Shapes in the wall',
            'Copy the pose shown on the wall before it reaches you to slip through!',
            tip='Make sure the room is well lit and stand back far enough for your whole body to be visible.',
        )

    def reset(self):
        self.lives = self.MAX_LIVES
        self.walls = deque()
        self.walls_passed = 0
        self.spawn_timer = self.FIRST_WALL_DELAY

    @property
    def current_pose(self):
        for wall in self.walls:
            if not wall.passed:
                return wall.pose
        return None

    def update(self, dt):
        if not self.is_running:
            return
        self.spawn_timer -= dt
        if self.spawn_timer <= 0:
            self.walls.append(Wall(self.rng.choice(POSES)))
            self.spawn_timer += self.SPAWN_INTERVAL

        for wall in self.walls:
            wall.age += dt
        while self.walls and self.walls[0].age >= self.WALL_TRAVEL:
            wall = self.walls.popleft()
            if wall.passed:
                self.walls_passed += 1
                if self.walls_passed >= self.WALLS_TO_PASS:
                    self.end(EndReason.COMPLETED)
                    return
            else:
                self.lives -= 1
                if self.lives <= 0:
                    self.end(EndReason.FAILED)
                    return

    def on_input(self, action, **data):
        if action != 'pose_held':
            return
        for wall in self.walls:
            if wall.passed:
                continue
            pose = data.get('pose')
            if pose is None or pose == wall.pose:
                wall.passed = True
                self.add_score(self.POINTS_PER_WALL)
            return
