import logging
import random
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from thumbnail.application.exceptions import (
    AnalysisLimitError,
    AnalysisServiceError,
    InvalidRequestError,
    PersistenceError,
    ThumbnailCountError,
    UnauthorizedError,
)
from thumbnail.application.port.analysis_repository_port import AnalysisRepositoryPort
from thumbnail.application.port.identity_port import IdentityPort
from thumbnail.application.port.vision_model_port import VisionModelPort
from thumbnail.domain.analysis import FREE_TIER_MONTHLY_LIMIT, Analysis, AuthUser, Thumbnail
from thumbnail.domain.analysis_request import MAX_THUMBNAILS, MIN_THUMBNAILS, AnalysisRequest
from thumbnail.domain.scoring import (
    ScoringParseError,
    ScoringResult,
    generate_fallback_scores,
    parse_scoring_response,
)
from thumbnail.utils.scoring_prompt import build_scoring_prompt
from thumbnail.utils.storage_key import storage_key_from_url

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise UnauthorizedError("Missing authorization header")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError()
    return token.strip()


def invalid_request(exc: ValidationError) -> InvalidRequestError:
    # 첫 번째 검증 오류만 "필드 경로 + 메시지" 형태로 돌려준다.
    first_error = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first_error.get("loc", ()))
    return InvalidRequestError(f"Invalid request body: {location} {first_error.get('msg', '')}".strip())


def authenticate(identity: IdentityPort, authorization: Optional[str]) -> AuthUser:
    token = extract_bearer_token(authorization)
    try:
        user = identity.get_user_from_token(token)
    except UnauthorizedError:
        raise
    except Exception as exc:
        logger.warning("[auth] 토큰 확인 실패: %s", exc)
        raise UnauthorizedError() from exc
    if user is None or not user.id:
        raise UnauthorizedError()
    return user


class AnalyzeThumbnailsUseCase:
    """
    썸네일 2~4장을 비전 모델로 채점하고 결과를 저장하는 유스케이스.
    - 인증 → 사용량 확인 → 입력 검증 → 모델 호출 → 파싱(실패 시 대체 점수) → 저장 순서로 진행한다.
    - 각 외부 호출은 정확히 한 번만 시도하며 재시도하지 않는다.
    """

    def __init__(
        self,
        identity: IdentityPort,
        repository: AnalysisRepositoryPort,
        vision_model: VisionModelPort,
        free_tier_limit: int = FREE_TIER_MONTHLY_LIMIT,
        rng: Optional[random.Random] = None,
    ):
        self.identity = identity
        self.repository = repository
        self.vision_model = vision_model
        self.free_tier_limit = free_tier_limit
        self.rng = rng

    def analyze(self, authorization: Optional[str], payload: Any) -> Dict[str, Any]:
        # 1. 인증
        user = authenticate(self.identity, authorization)

        # 2. 구독 등급 / 이번 달 사용량 조회
        try:
            profile = self.repository.get_user(user.id)
        except PersistenceError as exc:
            logger.error("[AnalyzeThumbnailsUseCase] 사용자 조회 실패: %s", exc)
            raise AnalysisServiceError("Failed to fetch user data") from exc
        if profile is None:
            raise AnalysisServiceError("Failed to fetch user data")

        # 3. 무료 플랜 한도 확인 (모델 비용이 발생하기 전에 차단)
        if profile.has_reached_limit(self.free_tier_limit):
            logger.info(
                "[AnalyzeThumbnailsUseCase] 무료 한도 초과: user=%s, count=%s",
                user.id,
                profile.analyses_this_month,
            )
            raise AnalysisLimitError()

        # 4. 요청 본문 검증
        request = self._parse_request(payload)
        logger.info(
            "[AnalyzeThumbnailsUseCase] 분석 시작: user=%s, thumbnails=%d",
            user.id,
            len(request.thumbnails),
        )

        # 5~7. 프롬프트 생성, 모델 호출, 결과 파싱
        scoring = self._score(request)

        # 8. 저장
        analysis = self._persist(user.id, request, scoring)

        # 9. 응답 구성
        logger.info(
            "[AnalyzeThumbnailsUseCase] 분석 완료: analysis=%s, degraded=%s",
            analysis.id,
            scoring.degraded,
        )
        return asdict(analysis)

    def _parse_request(self, payload: Any) -> AnalysisRequest:
        body = payload if isinstance(payload, dict) else {}
        thumbnails = body.get("thumbnails")
        if not isinstance(thumbnails, list) or not MIN_THUMBNAILS <= len(thumbnails) <= MAX_THUMBNAILS:
            raise ThumbnailCountError()

        try:
            return AnalysisRequest.model_validate(body)
        except ValidationError as exc:
            raise invalid_request(exc) from exc

    def _score(self, request: AnalysisRequest) -> ScoringResult:
        prompt = build_scoring_prompt(request.video_title, request.category)
        raw_text = self.vision_model.score_thumbnails(prompt, request.image_urls)

        try:
            return parse_scoring_response(raw_text, expected_count=len(request.thumbnails))
        except ScoringParseError as exc:
            # 파싱 실패는 요청 실패로 보지 않고 대체 점수로 응답한다.
            logger.warning(
                "[AnalyzeThumbnailsUseCase] 모델 응답 파싱 실패, 대체 점수 사용: %s | output=%r",
                exc,
                (raw_text or "")[:500],
            )
            return generate_fallback_scores(len(request.thumbnails), rng=self.rng)

    def _persist(self, user_id: str, request: AnalysisRequest, scoring: ScoringResult) -> Analysis:
        analysis = self.repository.insert_analysis(
            Analysis(
                user_id=user_id,
                video_title=request.video_title,
                category=request.category,
                notes=request.notes,
                status="completed",
            )
        )

        rows = self._build_thumbnail_rows(analysis.id, request, scoring)
        try:
            thumbnails = self.repository.insert_thumbnails(rows)
        except PersistenceError:
            self._discard_analysis(analysis.id)
            raise

        analysis.thumbnails = sorted(thumbnails, key=lambda thumb: thumb.order_index)
        return analysis

    @staticmethod
    def _build_thumbnail_rows(
        analysis_id: str,
        request: AnalysisRequest,
        scoring: ScoringResult,
    ) -> List[Thumbnail]:
        rows: List[Thumbnail] = []
        for index, (source, score) in enumerate(zip(request.thumbnails, scoring.thumbnails)):
            rows.append(
                Thumbnail(
                    analysis_id=analysis_id,
                    image_url=source.image_url,
                    image_s3_key=storage_key_from_url(source.image_url),
                    order_index=index + 1,
                    overall_score=score.overall_score,
                    face_visibility_score=score.scores.face_visibility,
                    text_readability_score=score.scores.text_readability,
                    color_contrast_score=score.scores.color_contrast,
                    visual_clarity_score=score.scores.visual_clarity,
                    emotional_impact_score=score.scores.emotional_impact,
                    predicted_ctr=score.predicted_ctr,
                    is_winner=scoring.is_winner(score),
                    face_detected=score.face_detected,
                    text_detected=score.text_detected,
                    recommendations=list(score.recommendations),
                    ai_analysis_raw=score.raw(),
                )
            )
        return rows

    def _discard_analysis(self, analysis_id: str) -> None:
        # 썸네일 저장이 실패하면 방금 만든 분석 행을 지워 고아 레코드를 남기지 않는다.
        try:
            self.repository.delete_analysis(analysis_id)
        except Exception:
            logger.exception("[AnalyzeThumbnailsUseCase] 분석 행 정리 실패: analysis=%s", analysis_id)

