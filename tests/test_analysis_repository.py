from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config.database.session import Base
from thumbnail.application.exceptions import NotFoundError, PersistenceError
from thumbnail.domain.analysis import Analysis, Thumbnail
from thumbnail.infrastructure.orm.models import AnalysisORM, ThumbnailORM, UserORM
from thumbnail.infrastructure.repository.analysis_repository_impl import AnalysisRepositoryImpl


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autoflush=False, bind=engine)
    with factory() as session:
        session.add_all([
            UserORM(id="user-1", email="me@example.com", subscription_tier="free", analyses_this_month=2),
            UserORM(id="user-2", email="you@example.com", subscription_tier="creator", analyses_this_month=0),
        ])
        session.commit()
    yield factory
    engine.dispose()


@pytest.fixture
def repo(session_factory) -> AnalysisRepositoryImpl:
    return AnalysisRepositoryImpl(session_factory)


def _thumbnail(analysis_id: str, order_index: int, overall: int = 70, winner: bool = False) -> Thumbnail:
    return Thumbnail(
        analysis_id=analysis_id,
        image_url=f"https://cdn.example.com/t/{order_index}.jpg",
        image_s3_key=f"/t/{order_index}.jpg",
        order_index=order_index,
        overall_score=overall,
        face_visibility_score=80,
        text_readability_score=75,
        color_contrast_score=70,
        visual_clarity_score=65,
        emotional_impact_score=60,
        predicted_ctr=overall / 10,
        is_winner=winner,
        face_detected=True,
        text_detected="HELLO",
        recommendations=["Make the text bigger"],
        ai_analysis_raw={"overallScore": overall},
    )


def _create(repo: AnalysisRepositoryImpl, user_id: str = "user-1", **kwargs) -> Analysis:
    analysis = repo.insert_analysis(Analysis(user_id=user_id, **kwargs))
    repo.insert_thumbnails([_thumbnail(analysis.id, 1, 70), _thumbnail(analysis.id, 2, 85, winner=True)])
    return analysis


def test_get_user(repo):
    profile = repo.get_user("user-1")

    assert profile.subscription_tier == "free"
    assert profile.analyses_this_month == 2
    assert repo.get_user("missing") is None


def test_insert_analysis_assigns_id_and_timestamps(repo):
    analysis = repo.insert_analysis(Analysis(user_id="user-1", video_title="Title", category="tech"))

    assert analysis.id
    assert analysis.created_at is not None
    assert analysis.status == "completed"
    assert analysis.thumbnails == []


def test_insert_thumbnails_round_trips_json_columns(repo):
    analysis = repo.insert_analysis(Analysis(user_id="user-1"))

    stored = repo.insert_thumbnails([_thumbnail(analysis.id, 1), _thumbnail(analysis.id, 2, 90, winner=True)])

    assert all(thumb.id for thumb in stored)
    assert stored[1].is_winner is True
    assert stored[0].recommendations == ["Make the text bigger"]
    assert stored[0].ai_analysis_raw == {"overallScore": 70}


def test_insert_thumbnails_failure_is_persistence_error(repo):
    analysis = repo.insert_analysis(Analysis(user_id="user-1"))
    broken = _thumbnail(analysis.id, 1)
    broken.image_url = None

    with pytest.raises(PersistenceError, match="Failed to create thumbnails"):
        repo.insert_thumbnails([broken])


def test_get_analysis_orders_thumbnails(repo):
    created = _create(repo, video_title="Ordered")

    analysis = repo.get_analysis(created.id)

    assert [thumb.order_index for thumb in analysis.thumbnails] == [1, 2]
    assert repo.get_analysis("missing") is None


def test_list_analyses_scopes_filters_and_pages(repo, session_factory):
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    ids = []
    for day, title in enumerate(["Minecraft tips", "Cooking pasta", "minecraft build", "Vlog"]):
        ids.append(_create(repo, video_title=title, category="gaming" if "inecraft" in title else "life").id)
        with session_factory() as session:
            session.get(AnalysisORM, ids[-1]).created_at = base + timedelta(days=day)
            session.commit()
    _create(repo, user_id="user-2", video_title="Minecraft other user")

    rows, total = repo.list_analyses("user-1", offset=0, limit=10, search="MINECRAFT")
    assert total == 2
    assert [row.video_title for row in rows] == ["minecraft build", "Minecraft tips"]

    rows, total = repo.list_analyses("user-1", offset=1, limit=2)
    assert total == 4
    assert [row.video_title for row in rows] == ["minecraft build", "Cooking pasta"]
    assert all(len(row.thumbnails) == 2 for row in rows)

    rows, total = repo.list_analyses("user-1", offset=0, limit=10, category="life", status="completed")
    assert total == 2


def test_update_analysis_sets_fields_and_selection(repo):
    created = _create(repo)
    thumbnails = repo.get_analysis(created.id).thumbnails

    updated = repo.update_analysis(
        created.id,
        {"selected_thumbnail_id": thumbnails[0].id, "actual_ctr": 6.5, "published": True},
    )

    assert updated.selected_thumbnail_id == thumbnails[0].id
    assert updated.actual_ctr == 6.5
    assert updated.published is True
    assert [thumb.is_selected for thumb in updated.thumbnails] == [True, False]


def test_update_missing_analysis_is_not_found(repo):
    with pytest.raises(NotFoundError):
        repo.update_analysis("missing", {"published": True})


def test_delete_analysis_removes_thumbnails(repo, session_factory):
    created = _create(repo)

    repo.delete_analysis(created.id)
    repo.delete_analysis(created.id)

    assert repo.get_analysis(created.id) is None
    with session_factory() as session:
        assert session.query(ThumbnailORM).filter_by(analysis_id=created.id).count() == 0
