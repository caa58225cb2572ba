import json
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from thumbnail.application.exceptions import NotFoundError, PersistenceError, UnauthorizedError
from thumbnail.domain.analysis import Analysis, AuthUser, Thumbnail, UserProfile

VALID_TOKEN = "valid-token"
USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class DummyIdentity:
    def __init__(self, users: Optional[Dict[str, AuthUser]] = None):
        self.users = users if users is not None else {VALID_TOKEN: AuthUser(id=USER_ID, email="me@example.com")}
        self.calls: List[str] = []

    def get_user_from_token(self, token: str) -> AuthUser:
        self.calls.append(token)
        if token not in self.users:
            raise UnauthorizedError()
        return self.users[token]


class DummyRepository:
    def __init__(self, profiles: Optional[Dict[str, UserProfile]] = None):
        self.profiles = profiles if profiles is not None else {
            USER_ID: UserProfile(id=USER_ID, email="me@example.com", subscription_tier="free", analyses_this_month=0),
        }
        self.analyses: Dict[str, Analysis] = {}
        self.thumbnails: Dict[str, List[Thumbnail]] = {}
        self.fail_thumbnail_insert = False
        self.fail_user_lookup = False
        self.writes = 0
        self.deleted: List[str] = []

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        if self.fail_user_lookup:
            raise PersistenceError("Failed to fetch user data: connection refused")
        return self.profiles.get(user_id)

    def insert_analysis(self, analysis: Analysis) -> Analysis:
        self.writes += 1
        now = datetime.now(timezone.utc)
        stored = replace(analysis, id=str(uuid.uuid4()), created_at=now, updated_at=now, thumbnails=[])
        self.analyses[stored.id] = stored
        self.thumbnails[stored.id] = []
        return replace(stored)

    def insert_thumbnails(self, thumbnails: List[Thumbnail]) -> List[Thumbnail]:
        self.writes += 1
        if self.fail_thumbnail_insert:
            raise PersistenceError("Failed to create thumbnails: disk full")
        stored = [
            replace(thumb, id=str(uuid.uuid4()), created_at=datetime.now(timezone.utc))
            for thumb in thumbnails
        ]
        for thumb in stored:
            self.thumbnails.setdefault(thumb.analysis_id, []).append(thumb)
        return list(stored)

    def get_analysis(self, analysis_id: str) -> Optional[Analysis]:
        analysis = self.analyses.get(analysis_id)
        if analysis is None:
            return None
        return replace(analysis, thumbnails=list(self.thumbnails.get(analysis_id, [])))

    def list_analyses(
        self,
        user_id: str,
        offset: int,
        limit: int,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Analysis], int]:
        rows = [a for a in self.analyses.values() if a.user_id == user_id]
        if status:
            rows = [a for a in rows if a.status == status]
        if category:
            rows = [a for a in rows if a.category == category]
        if search:
            needle = search.lower()
            rows = [
                a for a in rows
                if needle in (a.video_title or "").lower() or needle in (a.notes or "").lower()
            ]
        rows.sort(key=lambda a: a.created_at, reverse=True)
        page = [self.get_analysis(a.id) for a in rows[offset:offset + limit]]
        return page, len(rows)

    def update_analysis(self, analysis_id: str, changes: Dict[str, Any]) -> Analysis:
        if analysis_id not in self.analyses:
            raise NotFoundError("Analysis not found")
        self.analyses[analysis_id] = replace(self.analyses[analysis_id], **changes)
        if "selected_thumbnail_id" in changes:
            self.thumbnails[analysis_id] = [
                replace(thumb, is_selected=thumb.id == changes["selected_thumbnail_id"])
                for thumb in self.thumbnails[analysis_id]
            ]
        return self.get_analysis(analysis_id)

    def delete_analysis(self, analysis_id: str) -> None:
        self.deleted.append(analysis_id)
        self.analyses.pop(analysis_id, None)
        self.thumbnails.pop(analysis_id, None)


class DummyVisionModel:
    def __init__(self, response: str = "", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: List[Tuple[str, List[str]]] = []

    def score_thumbnails(self, prompt: str, image_urls: List[str]) -> str:
        self.calls.append((prompt, list(image_urls)))
        if self.error is not None:
            raise self.error
        return self.response


def model_output(overall_scores: List[int], winner: int) -> str:
    return json.dumps({
        "thumbnails": [
            {
                "thumbnailIndex": index,
                "overallScore": score,
                "scores": {
                    "faceVisibility": score,
                    "textReadability": score - 5,
                    "colorContrast": score - 3,
                    "visualClarity": score - 2,
                    "emotionalImpact": score - 1,
                },
                "predictedCTR": round(score / 10, 1),
                "faceDetected": index % 2 == 0,
                "textDetected": f"TEXT {index}",
                "recommendations": [f"tip {index}-a", f"tip {index}-b", f"tip {index}-c"],
            }
            for index, score in enumerate(overall_scores)
        ],
        "winner": winner,
    })


def analysis_payload(count: int = 2, **extra: Any) -> Dict[str, Any]:
    payload = {
        "videoTitle": "Build iOS Apps in 10 Minutes",
        "category": "education",
        "notes": "A/B test for the launch video",
        "thumbnails": [
            {"imageUrl": f"https://cdn.example.com/storage/v1/object/public/thumbnails/{USER_ID}/thumb-{i}.jpg", "order": i + 1}
            for i in range(count)
        ],
    }
    payload.update(extra)
    return payload


@pytest.fixture
def identity() -> DummyIdentity:
    return DummyIdentity()


@pytest.fixture
def repository() -> DummyRepository:
    return DummyRepository()


@pytest.fixture
def vision_model() -> DummyVisionModel:
    return DummyVisionModel(response=model_output([72, 91, 64], winner=1))
