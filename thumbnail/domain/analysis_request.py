from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

MIN_THUMBNAILS = 2
MAX_THUMBNAILS = 4


class ThumbnailInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(..., alias="imageUrl", description="업로드된 썸네일 이미지 URL")
    order: int = Field(..., description="클라이언트가 매긴 1부터 시작하는 순서")


class AnalysisRequest(BaseModel):
    """analyze-thumbnails 요청 본문. 제목/카테고리/메모는 자유 텍스트라 검증하지 않는다."""

    model_config = ConfigDict(populate_by_name=True)

    video_title: Optional[str] = Field(default=None, alias="videoTitle")
    category: Optional[str] = None
    notes: Optional[str] = None
    thumbnails: List[ThumbnailInput]

    @property
    def image_urls(self) -> List[str]:
        return [thumb.image_url for thumb in self.thumbnails]
