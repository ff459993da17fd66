from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from cadence.errors import DataAccessError
from cadence.models.artist import Artist
from cadence.models.feedback import RecommendationFeedback
from cadence.models.interaction import UserInteraction
from cadence.models.track import Track
from cadence.services.catalog import (
    CatalogRepository,
    candidate_tracks_query,
    recent_interactions_query,
)


class _Scalars:
    def __init__(self, rows):
        self._rows = rows

    def all(self):
        return list(self._rows)


class _Result:
    def __init__(self, rows):
        self._rows = rows

    def scalars(self):
        return _Scalars(self._rows)

    def scalar_one_or_none(self):
        return self._rows[0] if self._rows else None


class _FakeSession:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error
        self.queries = []
        self.added = []
        self.committed = False

    async def execute(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return _Result(self.rows)

    def add(self, model):
        self.added.append(model)

    async def commit(self):
        if self.error is not None:
            raise self.error
        self.committed = True


class _SessionFactory:
    def __init__(self, session):
        self.session = session

    def __call__(self):
        return self

    async def __aenter__(self):
        return self.session

    async def __aexit__(self, exc_type, exc, tb):
        return False


def _operational_error():
    return OperationalError("SELECT 1", {}, Exception("connection reset"))


def _track(track_id=1, **overrides):
    values = dict(
        id=track_id,
        title=f"Track {track_id}",
        artist_id=3,
        genre="Rock",
        duration=215.0,
        energy=0.7,
        valence=0.4,
        is_active=True,
        created_at=datetime(2026, 1, 1),
    )
    values.update(overrides)
    track = Track(**values)
    track.artist = Artist(id=values["artist_id"], name="The Band")
    return track


def test_candidate_query_excludes_seen_tracks_and_caps_pool():
    query = candidate_tracks_query(user_id=7, pool_cap=1000)
    sql = str(query)
    params = query.compile().params

    assert "EXISTS" in sql
    assert "NOT" in sql
    assert "tracks.is_active" in sql
    assert "ORDER BY tracks.created_at DESC, tracks.id DESC" in sql
    assert 7 in params.values()
    assert 1000 in params.values()


def test_recent_interactions_query_orders_newest_first():
    query = recent_interactions_query(user_id=5, limit=100)
    sql = str(query)
    params = query.compile().params

    assert "ORDER BY user_interactions.created_at DESC, user_interactions.id DESC" in sql
    assert 5 in params.values()
    assert 100 in params.values()


@pytest.mark.asyncio
async def test_fetch_candidate_tracks_converts_rows_to_features():
    session = _FakeSession(rows=[_track(1), _track(2, genre=None, energy=None, valence=None)])
    repository = CatalogRepository(_SessionFactory(session))

    tracks = await repository.fetch_candidate_tracks(7, pool_cap=50)

    assert [t.track_id for t in tracks] == [1, 2]
    assert tracks[0].genre == "Rock"
    assert tracks[0].artist_name == "The Band"
    assert tracks[0].audio.energy == 0.7
    assert tracks[0].audio.tempo is None
    assert tracks[1].genre is None
    assert tracks[1].audio is None
    assert len(session.queries) == 1


@pytest.mark.asyncio
async def test_fetch_recent_interactions_joins_track_features():
    interaction = UserInteraction(
        id=11,
        user_id=7,
        track_id=1,
        interaction_type="like",
        duration=180.0,
        context={"source": "radio"},
        created_at=datetime(2026, 2, 1),
    )
    interaction.track = _track(1)
    repository = CatalogRepository(_SessionFactory(_FakeSession(rows=[interaction])))

    records = await repository.fetch_recent_interactions(7)

    assert len(records) == 1
    record = records[0]
    assert record.interaction_type == "like"
    assert record.track.genre == "Rock"
    assert record.track.duration == 215.0
    assert record.context == {"source": "radio"}


@pytest.mark.asyncio
async def test_fetch_track_returns_none_when_missing():
    repository = CatalogRepository(_SessionFactory(_FakeSession(rows=[])))

    assert await repository.fetch_track(404) is None


@pytest.mark.asyncio
async def test_storage_errors_become_data_access_errors():
    original = _operational_error()
    repository = CatalogRepository(_SessionFactory(_FakeSession(error=original)))

    with pytest.raises(DataAccessError) as raised:
        await repository.fetch_recent_interactions(7)

    assert raised.value.__cause__ is original
    assert raised.value.code == "data_access"

    with pytest.raises(DataAccessError):
        await repository.fetch_candidate_tracks(7)

    with pytest.raises(DataAccessError):
        await repository.fetch_track(1)


@pytest.mark.asyncio
async def test_record_feedback_appends_single_row():
    session = _FakeSession()
    repository = CatalogRepository(_SessionFactory(session))

    await repository.record_feedback(7, "7:12", "positive", "great pick", metadata={"source": "test"})

    assert session.committed is True
    assert len(session.added) == 1
    row = session.added[0]
    assert isinstance(row, RecommendationFeedback)
    assert row.user_id == 7
    assert row.recommendation_id == "7:12"
    assert row.feedback_type == "positive"
    assert row.comment == "great pick"
    assert row.feedback_metadata == {"source": "test"}


@pytest.mark.asyncio
async def test_record_feedback_wraps_commit_failure():
    repository = CatalogRepository(_SessionFactory(_FakeSession(error=_operational_error())))

    with pytest.raises(DataAccessError):
        await repository.record_feedback(7, "7:12", "negative")
