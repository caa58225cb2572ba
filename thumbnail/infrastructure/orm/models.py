import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from config.database.session import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserORM(Base):
    # 한국어 주석: users 테이블은 인증/결제 쪽에서 관리하며 여기서는 읽기만 한다.
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False)
    full_name = Column(String(255))
    channel_name = Column(String(255))
    subscription_tier = Column(String(20), nullable=False, default="free")
    subscription_status = Column(String(20), nullable=False, default="active")
    analyses_this_month = Column(Integer, nullable=False, default=0)
    analyses_reset_at = Column(DateTime(timezone=True), default=_utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class AnalysisORM(Base):
    __tablename__ = "analyses"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_title = Column(String(255))
    category = Column(String(100))
    notes = Column(Text)
    status = Column(String(20), nullable=False, default="completed")
    published = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime(timezone=True))
    youtube_video_id = Column(String(32))
    youtube_video_url = Column(String(500))
    actual_ctr = Column(Float)
    actual_views = Column(Integer)
    selected_thumbnail_id = Column(String(36))
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    thumbnails = relationship(
        "ThumbnailORM",
        back_populates="analysis",
        cascade="all, delete-orphan",
        order_by="ThumbnailORM.order_index",
    )


class ThumbnailORM(Base):
    __tablename__ = "thumbnails"

    id = Column(String(36), primary_key=True, default=_new_id)
    analysis_id = Column(String(36), ForeignKey("analyses.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(Text, nullable=False)
    image_s3_key = Column(Text, nullable=False)
    order_index = Column(Integer, nullable=False)
    overall_score = Column(Integer)
    face_visibility_score = Column(Integer)
    text_readability_score = Column(Integer)
    color_contrast_score = Column(Integer)
    visual_clarity_score = Column(Integer)
    emotional_impact_score = Column(Integer)
    predicted_ctr = Column(Float)
    is_winner = Column(Boolean, nullable=False, default=False)
    is_selected = Column(Boolean, nullable=False, default=False)
    face_detected = Column(Boolean)
    text_detected = Column(Text)
    recommendations = Column(JSON)
    ai_analysis_raw = Column(JSON)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    analysis = relationship("AnalysisORM", back_populates="thumbnails")
