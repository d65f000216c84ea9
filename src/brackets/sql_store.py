"""
Relational storage for seasons, rosters, moderators and brackets.

Uses SQLAlchemy ORM models. Every save replaces the stored value inside a
single session transaction, matching the whole-file writes of FileStore.
"""
from sqlalchemy import create_engine, Column, Integer, String, Boolean, ForeignKey
from sqlalchemy.orm import sessionmaker, relationship, declarative_base
from sqlalchemy.pool import StaticPool

from .elimination import ROUND_ORDER
from .storage import BracketStore

# Create a base class for all ORM models.
Base = declarative_base()


class Season(Base):
    """
    A season and its display months.

    Rows also exist for seasons removed from the listing (listed=False)
    until delete_season is called, so their data can be saved and read.
    """
    __tablename__ = 'seasons'
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    listed = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, default=0, nullable=False)
    month1 = Column(String, nullable=True)
    month2 = Column(String, nullable=True)
    participants = relationship("SeasonParticipant", back_populates="season",
                                cascade="all, delete-orphan", order_by="SeasonParticipant.position")
    moderators = relationship("SeasonModerator", back_populates="season",
                              cascade="all, delete-orphan", order_by="SeasonModerator.position")
    matches = relationship("BracketMatch", back_populates="season", cascade="all, delete-orphan")


class GlobalParticipant(Base):
    __tablename__ = 'participants'
    id = Column(Integer, primary_key=True, autoincrement=True)
    position = Column(Integer, default=0, nullable=False)
    name = Column(String, unique=True, nullable=False)
    seed = Column(Integer, nullable=True)


class GlobalModerator(Base):
    __tablename__ = 'moderators'
    id = Column(Integer, primary_key=True, autoincrement=True)
    position = Column(Integer, default=0, nullable=False)
    name = Column(String, unique=True, nullable=False)


class SeasonParticipant(Base):
    __tablename__ = 'season_participants'
    id = Column(Integer, primary_key=True, autoincrement=True)
    season_id = Column(Integer, ForeignKey('seasons.id'), nullable=False)
    position = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    seed = Column(Integer, nullable=True)
    season = relationship("Season", back_populates="participants")


class SeasonModerator(Base):
    __tablename__ = 'season_moderators'
    id = Column(Integer, primary_key=True, autoincrement=True)
    season_id = Column(Integer, ForeignKey('seasons.id'), nullable=False)
    position = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    season = relationship("Season", back_populates="moderators")


class BracketMatch(Base):
    """
    One match of a season's bracket.

    round is the 1-based stage number (1 = Round 1 ... 4 = Finals). Slot
    and winner names are plain strings; an empty name is a TBD slot.
    """
    __tablename__ = 'bracket_matches'
    id = Column(Integer, primary_key=True, autoincrement=True)
    season_id = Column(Integer, ForeignKey('seasons.id'), nullable=False)
    round = Column(Integer, nullable=False)
    match_number = Column(Integer, nullable=False)
    player1_name = Column(String, nullable=False, default='')
    player1_seed = Column(Integer, nullable=True)
    player2_name = Column(String, nullable=False, default='')
    player2_seed = Column(Integer, nullable=True)
    winner = Column(String, nullable=True)
    season = relationship("Season", back_populates="matches")


def _player(name, seed) -> dict:
    data = {'name': name or ''}
    if seed is not None:
        data['seed'] = seed
    return data


class SqlStore(BracketStore):
    """BracketStore backed by any database SQLAlchemy can reach."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        kwargs = {'echo': False}
        if database_url in ('sqlite://', 'sqlite:///:memory:'):
            # One shared connection, otherwise every session sees a fresh empty database.
            kwargs['poolclass'] = StaticPool
            kwargs['connect_args'] = {'check_same_thread': False}
        self.engine = create_engine(database_url, **kwargs)
        self.Session = sessionmaker(bind=self.engine)
        Base.metadata.create_all(self.engine)

    def _read(self, fn):
        session = self.Session()
        try:
            return fn(session)
        finally:
            session.close()

    def _write(self, fn):
        session = self.Session()
        try:
            fn(session)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @staticmethod
    def _season(session, name: str, create: bool = False):
        season = session.query(Season).filter_by(name=name).first()
        if season is None and create:
            season = Season(name=name, listed=False, position=0)
            session.add(season)
            session.flush()
        return season

    # ------------------------------------------------------------------
    # Seasons
    # ------------------------------------------------------------------

    def list_seasons(self) -> list:
        return self._read(lambda s: [row.name for row in
                                     s.query(Season).filter_by(listed=True).order_by(Season.position).all()])

    def save_seasons(self, seasons: list):
        def apply(session):
            for row in session.query(Season).all():
                row.listed = False
            for position, name in enumerate(seasons):
                row = self._season(session, name, create=True)
                row.listed = True
                row.position = position
        self._write(apply)

    def delete_season(self, season: str):
        def apply(session):
            row = self._season(session, season)
            if row is not None:
                session.delete(row)
        self._write(apply)

    # ------------------------------------------------------------------
    # Brackets
    # ------------------------------------------------------------------

    def get_bracket(self, season: str):
        def read(session):
            row = self._season(session, season)
            if row is None:
                return None
            bracket = {}
            ordered = sorted(row.matches, key=lambda m: (m.round, m.match_number))
            for m in ordered:
                if not 1 <= m.round <= len(ROUND_ORDER):
                    continue
                match = {
                    'matchNumber': m.match_number,
                    'player1': _player(m.player1_name, m.player1_seed),
                    'player2': _player(m.player2_name, m.player2_seed),
                }
                if m.winner:
                    match['winner'] = m.winner
                bracket.setdefault(ROUND_ORDER[m.round - 1], []).append(match)
            return bracket
        return self._read(read)

    def save_bracket(self, season: str, bracket: dict):
        def apply(session):
            row = self._season(session, season, create=True)
            row.matches.clear()
            session.flush()
            for round_name, matches in (bracket or {}).items():
                if round_name not in ROUND_ORDER:
                    continue
                for match in matches or []:
                    player1 = match.get('player1') or {}
                    player2 = match.get('player2') or {}
                    row.matches.append(BracketMatch(
                        round=ROUND_ORDER.index(round_name) + 1,
                        match_number=match.get('matchNumber'),
                        player1_name=player1.get('name', ''),
                        player1_seed=player1.get('seed'),
                        player2_name=player2.get('name', ''),
                        player2_seed=player2.get('seed'),
                        winner=match.get('winner') or None,
                    ))
        self._write(apply)

    # ------------------------------------------------------------------
    # Season metadata, rosters and moderators
    # ------------------------------------------------------------------

    def get_season_meta(self, season: str) -> dict:
        def read(session):
            row = self._season(session, season)
            if row is None:
                return {}
            return {k: v for k, v in (('month1', row.month1), ('month2', row.month2)) if v}
        return self._read(read)

    def save_season_meta(self, season: str, meta: dict):
        def apply(session):
            row = self._season(session, season, create=True)
            row.month1 = meta.get('month1') or None
            row.month2 = meta.get('month2') or None
        self._write(apply)

    def get_participants(self, season: str) -> list:
        def read(session):
            row = self._season(session, season)
            if row is None:
                return []
            return [_player(p.name, p.seed) for p in row.participants]
        return self._read(read)

    def save_participants(self, season: str, participants: list):
        def apply(session):
            row = self._season(session, season, create=True)
            row.participants.clear()
            session.flush()
            for position, p in enumerate(participants):
                row.participants.append(SeasonParticipant(position=position, name=p['name'],
                                                          seed=p.get('seed')))
        self._write(apply)

    def get_season_moderators(self, season: str) -> list:
        def read(session):
            row = self._season(session, season)
            if row is None:
                return []
            return [{'name': m.name} for m in row.moderators]
        return self._read(read)

    def save_season_moderators(self, season: str, moderators: list):
        def apply(session):
            row = self._season(session, season, create=True)
            row.moderators.clear()
            session.flush()
            for position, m in enumerate(moderators):
                row.moderators.append(SeasonModerator(position=position, name=m['name']))
        self._write(apply)

    # ------------------------------------------------------------------
    # Global roster
    # ------------------------------------------------------------------

    def get_global_participants(self) -> list:
        return self._read(lambda s: [_player(p.name, p.seed) for p in
                                     s.query(GlobalParticipant).order_by(GlobalParticipant.position).all()])

    def save_global_participants(self, participants: list):
        def apply(session):
            session.query(GlobalParticipant).delete()
            session.flush()
            for position, p in enumerate(participants):
                session.add(GlobalParticipant(position=position, name=p['name'], seed=p.get('seed')))
        self._write(apply)

    def get_global_moderators(self) -> list:
        return self._read(lambda s: [{'name': m.name} for m in
                                     s.query(GlobalModerator).order_by(GlobalModerator.position).all()])

    def save_global_moderators(self, moderators: list):
        def apply(session):
            session.query(GlobalModerator).delete()
            session.flush()
            for position, m in enumerate(moderators):
                session.add(GlobalModerator(position=position, name=m['name']))
        self._write(apply)

    def __repr__(self):
        return f"SqlStore(database_url={self.engine.url!r})"
