import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from config.database.session import SessionLocal
from thumbnail.application.exceptions import NotFoundError, PersistenceError
from thumbnail.application.port.analysis_repository_port import AnalysisRepositoryPort
from thumbnail.domain.analysis import Analysis, Thumbnail, UserProfile
from thumbnail.infrastructure.orm.models import AnalysisORM, ThumbnailORM, UserORM

logger = logging.getLogger(__name__)


class AnalysisRepositoryImpl(AnalysisRepositoryPort):
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    def get_user(self, user_id: str) -> Optional[UserProfile]:
        with self.session_factory() as session:
            try:
                orm = session.get(UserORM, user_id)
            except SQLAlchemyError as exc:
                raise PersistenceError(f"Failed to fetch user data: {exc}") from exc

            if orm is None:
                return None
            return UserProfile(
                id=orm.id,
                email=orm.email,
                subscription_tier=orm.subscription_tier,
                analyses_this_month=orm.analyses_this_month or 0,
            )

    def insert_analysis(self, analysis: Analysis) -> Analysis:
        with self.session_factory() as session:
            orm = AnalysisORM(
                user_id=analysis.user_id,
                video_title=analysis.video_title,
                category=analysis.category,
                notes=analysis.notes,
                status=analysis.status,
                published=analysis.published,
                published_at=analysis.published_at,
                youtube_video_id=analysis.youtube_video_id,
                youtube_video_url=analysis.youtube_video_url,
                actual_ctr=analysis.actual_ctr,
                actual_views=analysis.actual_views,
                selected_thumbnail_id=analysis.selected_thumbnail_id,
            )
            session.add(orm)
            try:
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError(f"Failed to create analysis: {exc}") from exc

            return self._to_analysis(orm, include_thumbnails=False)

    def insert_thumbnails(self, thumbnails: List[Thumbnail]) -> List[Thumbnail]:
        with self.session_factory() as session:
            orms = [
                ThumbnailORM(
                    analysis_id=thumb.analysis_id,
                    image_url=thumb.image_url,
                    image_s3_key=thumb.image_s3_key,
                    order_index=thumb.order_index,
                    overall_score=thumb.overall_score,
                    face_visibility_score=thumb.face_visibility_score,
                    text_readability_score=thumb.text_readability_score,
                    color_contrast_score=thumb.color_contrast_score,
                    visual_clarity_score=thumb.visual_clarity_score,
                    emotional_impact_score=thumb.emotional_impact_score,
                    predicted_ctr=thumb.predicted_ctr,
                    is_winner=thumb.is_winner,
                    is_selected=thumb.is_selected,
                    face_detected=thumb.face_detected,
                    text_detected=thumb.text_detected,
                    recommendations=thumb.recommendations,
                    ai_analysis_raw=thumb.ai_analysis_raw,
                )
                for thumb in thumbnails
            ]
            session.add_all(orms)
            try:
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError(f"Failed to create thumbnails: {exc}") from exc

            return [self._to_thumbnail(orm) for orm in orms]

    def get_analysis(self, analysis_id: str) -> Optional[Analysis]:
        with self.session_factory() as session:
            orm = session.get(
                AnalysisORM,
                analysis_id,
                options=[selectinload(AnalysisORM.thumbnails)],
            )
            return self._to_analysis(orm) if orm else None

    def list_analyses(
        self,
        user_id: str,
        offset: int,
        limit: int,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Analysis], int]:
        query = select(AnalysisORM).where(AnalysisORM.user_id == user_id)
        if status:
            query = query.where(AnalysisORM.status == status)
        if category:
            query = query.where(AnalysisORM.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(AnalysisORM.video_title.ilike(pattern), AnalysisORM.notes.ilike(pattern))
            )

        with self.session_factory() as session:
            total = session.scalar(select(func.count()).select_from(query.subquery())) or 0
            rows = session.scalars(
                query.options(selectinload(AnalysisORM.thumbnails))
                .order_by(AnalysisORM.created_at.desc())
                .offset(offset)
                .limit(limit)
            ).all()
            return [self._to_analysis(orm) for orm in rows], int(total)

    def update_analysis(self, analysis_id: str, changes: Dict[str, Any]) -> Analysis:
        with self.session_factory() as session:
            orm = session.get(AnalysisORM, analysis_id, options=[selectinload(AnalysisORM.thumbnails)])
            if orm is None:
                raise NotFoundError("Analysis not found")

            for key, value in changes.items():
                setattr(orm, key, value)

            # 선택된 썸네일 플래그는 분석 단위로 하나만 유지한다.
            if "selected_thumbnail_id" in changes:
                for thumb in orm.thumbnails:
                    thumb.is_selected = thumb.id == changes["selected_thumbnail_id"]

            try:
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError(f"Failed to update analysis: {exc}") from exc

            return self._to_analysis(orm)

    def delete_analysis(self, analysis_id: str) -> None:
        with self.session_factory() as session:
            orm = session.get(AnalysisORM, analysis_id)
            if orm is None:
                logger.info("[AnalysisRepositoryImpl] 삭제할 분석이 없음: %s", analysis_id)
                return

            session.delete(orm)
            try:
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceError(f"Failed to delete analysis: {exc}") from exc

    @staticmethod
    def _to_thumbnail(orm: ThumbnailORM) -> Thumbnail:
        return Thumbnail(
            id=orm.id,
            analysis_id=orm.analysis_id,
            image_url=orm.image_url,
            image_s3_key=orm.image_s3_key,
            order_index=orm.order_index,
            overall_score=orm.overall_score,
            face_visibility_score=orm.face_visibility_score,
            text_readability_score=orm.text_readability_score,
            color_contrast_score=orm.color_contrast_score,
            visual_clarity_score=orm.visual_clarity_score,
            emotional_impact_score=orm.emotional_impact_score,
            predicted_ctr=orm.predicted_ctr,
            is_winner=bool(orm.is_winner),
            is_selected=bool(orm.is_selected),
            face_detected=bool(orm.face_detected),
            text_detected=orm.text_detected or "",
            recommendations=list(orm.recommendations or []),
            ai_analysis_raw=dict(orm.ai_analysis_raw or {}),
            created_at=orm.created_at,
        )

    def _to_analysis(self, orm: AnalysisORM, include_thumbnails: bool = True) -> Analysis:
        return Analysis(
            id=orm.id,
            user_id=orm.user_id,
            video_title=orm.video_title,
            category=orm.category,
            notes=orm.notes,
            status=orm.status,
            published=bool(orm.published),
            published_at=orm.published_at,
            youtube_video_id=orm.youtube_video_id,
            youtube_video_url=orm.youtube_video_url,
            actual_ctr=orm.actual_ctr,
            actual_views=orm.actual_views,
            selected_thumbnail_id=orm.selected_thumbnail_id,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            thumbnails=[self._to_thumbnail(thumb) for thumb in orm.thumbnails] if include_thumbnails else [],
        )
