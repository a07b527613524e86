from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from partyarcade import db
from partyarcade.models import PlayerScore, utcnow
from .errors import StorageError

# Dialects with a native INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


class UpsertOutcome(str, Enum):
    CREATED = 'created'
    UPDATED = 'updated'
    REJECTED = 'rejected'


@dataclass(frozen=True)
class UpsertResult:
    outcome: UpsertOutcome
    previous_score: Optional[int] = None
    reason: Optional[str] = None


class ScoreStore:
    """Best-score-per-pseudo table with ranking reads.

    Writes are a ratchet: a pseudo's score is only replaced by a strictly
    greater one, inside a single transaction.
    """

    def init_schema(self) -> None:
        try:
            PlayerScore.__table__.create(bind=db.engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise self._storage_error('init-schema', exc) from exc

    def upsert_best(self, pseudo: str, score: int) -> UpsertResult:
        now = utcnow()
        try:
            if self._insert_if_absent(pseudo, score, now):
                db.session.commit()
                current_app.logger.info(f"[score-created] pseudo={pseudo} score={score}")
                return UpsertResult(UpsertOutcome.CREATED)

            previous = db.session.execute(
                select(PlayerScore.score).where(PlayerScore.pseudo == pseudo).with_for_update()
            ).scalar_one()
            result = db.session.execute(
                update(PlayerScore)
                .where(PlayerScore.pseudo == pseudo, PlayerScore.score < score)
                .values(score=score, date=now)
                .execution_options(synchronize_session=False)
            )
            db.session.commit()
        except SQLAlchemyError as exc:
            raise self._storage_error(f'upsert pseudo={pseudo}', exc) from exc

        if result.rowcount == 1:
            current_app.logger.info(f"[score-updated] pseudo={pseudo} score={previous} -> {score}")
            return UpsertResult(UpsertOutcome.UPDATED, previous_score=previous)
        current_app.logger.info(f"[score-kept] pseudo={pseudo} best={previous} submitted={score}")
        return UpsertResult(UpsertOutcome.REJECTED, previous_score=previous, reason='not_better')

    def list_top(self, limit: int = 10) -> List[PlayerScore]:
        if limit <= 0:
            raise ValueError('limit must be positive')
        try:
            return (
                PlayerScore.query
                .order_by(PlayerScore.score.desc(), PlayerScore.date.asc(), PlayerScore.id.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._storage_error('list-top', exc) from exc

    def get_rank(self, pseudo: str) -> Optional[dict]:
        try:
            entry = PlayerScore.query.filter_by(pseudo=pseudo).first()
            if not entry:
                return None
            higher = PlayerScore.query.filter(PlayerScore.score > entry.score).count()
        except SQLAlchemyError as exc:
            raise self._storage_error(f'rank pseudo={pseudo}', exc) from exc
        return {'rank': higher + 1, 'pseudo': entry.pseudo, 'score': entry.score}

    def _insert_if_absent(self, pseudo, score, now) -> bool:
        dialect = db.session.get_bind().dialect.name
        make_insert = _CONFLICT_INSERTS.get(dialect)
        if make_insert is not None:
            stmt = (
                make_insert(PlayerScore)
                .values(pseudo=pseudo, score=score, date=now)
                .on_conflict_do_nothing(index_elements=['pseudo'])
            )
            return db.session.execute(stmt).rowcount == 1

        # Portable path: the unique constraint decides, inside a savepoint
        try:
            with db.session.begin_nested():
                db.session.add(PlayerScore(pseudo=pseudo, score=score, date=now))
        except IntegrityError:
            return False
        return True

    def _storage_error(self, action: str, exc: SQLAlchemyError) -> StorageError:
        db.session.rollback()
        current_app.logger.error(f"[storage-error] {action} error={exc}")
        return StorageError(f'leaderboard storage failure during {action.split()[0]}')
