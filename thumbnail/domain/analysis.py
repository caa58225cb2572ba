from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

FREE_TIER = "free"
FREE_TIER_MONTHLY_LIMIT = 3


@dataclass
class AuthUser:
    id: str
    email: Optional[str] = None


@dataclass
class UserProfile:
    id: str
    email: Optional[str]
    subscription_tier: str
    analyses_this_month: int

    def has_reached_limit(self, limit: int = FREE_TIER_MONTHLY_LIMIT) -> bool:
        # 무료 플랜만 월간 분석 횟수 제한을 받는다.
        return self.subscription_tier == FREE_TIER and self.analyses_this_month >= limit


@dataclass
class Thumbnail:
    analysis_id: str
    image_url: str
    image_s3_key: str
    order_index: int
    overall_score: int
    face_visibility_score: int
    text_readability_score: int
    color_contrast_score: int
    visual_clarity_score: int
    emotional_impact_score: int
    predicted_ctr: float
    is_winner: bool
    face_detected: bool
    text_detected: str
    recommendations: List[str]
    ai_analysis_raw: Dict[str, Any]
    is_selected: bool = False
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Analysis:
    user_id: str
    video_title: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    status: str = "completed"
    published: bool = False
    published_at: Optional[datetime] = None
    youtube_video_id: Optional[str] = None
    youtube_video_url: Optional[str] = None
    actual_ctr: Optional[float] = None
    actual_views: Optional[int] = None
    selected_thumbnail_id: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    thumbnails: List[Thumbnail] = field(default_factory=list)
