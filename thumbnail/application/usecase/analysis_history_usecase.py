import logging
import math
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError

from thumbnail.application.exceptions import InvalidRequestError, NotFoundError
from thumbnail.application.port.analysis_repository_port import AnalysisRepositoryPort
from thumbnail.application.port.identity_port import IdentityPort
from thumbnail.application.usecase.analyze_thumbnails_usecase import authenticate, invalid_request
from thumbnail.domain.analysis import Analysis
from thumbnail.domain.analysis_update_request import AnalysisUpdateRequest
from thumbnail.utils.youtube_url import parse_youtube_video_id

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class AnalysisHistoryUseCase:
    """
    저장된 분석 이력을 조회/수정/삭제하는 유스케이스.
    - 모든 작업은 호출자 본인의 분석만 대상으로 한다.
    """

    def __init__(self, identity: IdentityPort, repository: AnalysisRepositoryPort):
        self.identity = identity
        self.repository = repository

    def list_analyses(
        self,
        authorization: Optional[str],
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        user = authenticate(self.identity, authorization)
        if page < 1:
            raise InvalidRequestError("page must be 1 or greater")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise InvalidRequestError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        analyses, total = self.repository.list_analyses(
            user_id=user.id,
            offset=(page - 1) * limit,
            limit=limit,
            status=status,
            category=category,
            search=search.strip() if search else None,
        )
        return {
            "analyses": [asdict(analysis) for analysis in analyses],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit) if total else 0,
            },
        }

    def get_analysis(self, authorization: Optional[str], analysis_id: str) -> Dict[str, Any]:
        user = authenticate(self.identity, authorization)
        return asdict(self._get_owned(user.id, analysis_id))

    def update_analysis(
        self,
        authorization: Optional[str],
        analysis_id: str,
        payload: Any,
    ) -> Dict[str, Any]:
        user = authenticate(self.identity, authorization)
        updates = self._parse_changes(payload)
        analysis = self._get_owned(user.id, analysis_id)

        selected_id = updates.get("selected_thumbnail_id")
        if selected_id is not None and selected_id not in {thumb.id for thumb in analysis.thumbnails}:
            raise InvalidRequestError("selectedThumbnailId does not belong to this analysis")

        if "youtube_video_url" in updates:
            updates["youtube_video_id"] = parse_youtube_video_id(updates["youtube_video_url"])

        # 게시 처리 시 시각이 없으면 지금 시각으로 기록한다.
        if updates.get("published") and not updates.get("published_at") and not analysis.published_at:
            updates["published_at"] = datetime.now(timezone.utc)

        logger.info("[AnalysisHistoryUseCase] 분석 수정: analysis=%s, fields=%s", analysis_id, sorted(updates))
        return asdict(self.repository.update_analysis(analysis_id, updates))

    def delete_analysis(self, authorization: Optional[str], analysis_id: str) -> Dict[str, Any]:
        user = authenticate(self.identity, authorization)
        self._get_owned(user.id, analysis_id)
        self.repository.delete_analysis(analysis_id)
        logger.info("[AnalysisHistoryUseCase] 분석 삭제: analysis=%s", analysis_id)
        return {"id": analysis_id, "deleted": True}

    @staticmethod
    def _parse_changes(payload: Any) -> Dict[str, Any]:
        # 인증 이후에 본문을 검증한다. 전달된 필드만 변경 대상으로 삼는다.
        try:
            request = AnalysisUpdateRequest.model_validate(payload)
        except ValidationError as exc:
            raise invalid_request(exc) from exc
        return request.model_dump(exclude_unset=True)

    def _get_owned(self, user_id: str, analysis_id: str) -> Analysis:
        analysis = self.repository.get_analysis(analysis_id)
        # 다른 사용자의 분석은 존재 여부도 노출하지 않는다.
        if analysis is None or analysis.user_id != user_id:
            raise NotFoundError("Analysis not found")
        return analysis
