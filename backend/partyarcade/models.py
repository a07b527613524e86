from datetime import datetime, timezone

from partyarcade import db

PSEUDO_MAX_LENGTH = 50


def utcnow():
    return datetime.now(timezone.utc)


class PlayerScore(db.Model):
    """Best score ever recorded under one pseudo.

    ``score`` only ever moves up; ``date`` follows the last time it did.
    """
    __tablename__ = 'leaderboard'
    id = db.Column(db.Integer, primary_key=True)
    pseudo = db.Column(db.String(PSEUDO_MAX_LENGTH), unique=True, nullable=False)
    score = db.Column(db.Integer, nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'pseudo': self.pseudo,
            'score': self.score,
            'date': self.date.isoformat() if self.date else None,
        }


# Ranking reads scan by score, best first
db.Index('idx_score', PlayerScore.score.desc())
