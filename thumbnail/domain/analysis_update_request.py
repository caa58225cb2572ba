from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalysisUpdateRequest(BaseModel):
    """분석 이력 수정 요청. 전달된 필드만 반영한다."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    published: Optional[bool] = None
    published_at: Optional[datetime] = Field(default=None, alias="publishedAt")
    selected_thumbnail_id: Optional[str] = Field(default=None, alias="selectedThumbnailId")
    youtube_video_url: Optional[str] = Field(default=None, alias="youtubeVideoUrl")
    actual_ctr: Optional[float] = Field(default=None, alias="actualCtr", ge=0, le=100)
    actual_views: Optional[int] = Field(default=None, alias="actualViews", ge=0)
