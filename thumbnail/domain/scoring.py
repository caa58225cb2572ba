"""
비전 모델이 돌려주는 점수 JSON 계약과, 파싱에 실패했을 때 쓰는 대체 점수 생성기.

모델 출력은 신뢰할 수 없는 입력이므로 스키마 검증을 거친 뒤에만 사용한다.
- 점수는 모두 0~100 범위로 잘라낸다.
- 선택 필드가 비어 있으면 안전한 기본값으로 채운다.
- 썸네일 개수, 인덱스, winner 가 입력과 맞지 않으면 ScoringParseError 를 던진다.
"""
from __future__ import annotations

import json
import math
import random
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

FALLBACK_RECOMMENDATIONS = [
    "Analysis completed with basic scoring",
    "Consider re-analyzing for detailed insights",
    "Thumbnail shows good potential",
]

_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


class ScoringParseError(ValueError):
    pass


def _clamp_score(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("score must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"score must be a number: {value!r}") from exc
    if math.isnan(number):
        raise ValueError("score must be a number")
    return int(round(max(0.0, min(100.0, number))))


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    face_visibility: int = Field(default=0, alias="faceVisibility")
    text_readability: int = Field(default=0, alias="textReadability")
    color_contrast: int = Field(default=0, alias="colorContrast")
    visual_clarity: int = Field(default=0, alias="visualClarity")
    emotional_impact: int = Field(default=0, alias="emotionalImpact")

    @field_validator(
        "face_visibility",
        "text_readability",
        "color_contrast",
        "visual_clarity",
        "emotional_impact",
        mode="before",
    )
    @classmethod
    def _clamp(cls, value: Any) -> int:
        return _clamp_score(value)


class ThumbnailScore(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    thumbnail_index: Optional[int] = Field(default=None, alias="thumbnailIndex")
    overall_score: int = Field(..., alias="overallScore")
    scores: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    predicted_ctr: Optional[float] = Field(default=None, alias="predictedCTR")
    face_detected: bool = Field(default=False, alias="faceDetected")
    text_detected: str = Field(default="", alias="textDetected")
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("overall_score", mode="before")
    @classmethod
    def _clamp_overall(cls, value: Any) -> int:
        return _clamp_score(value)

    @field_validator("predicted_ctr", mode="before")
    @classmethod
    def _clamp_ctr(cls, value: Any) -> Optional[float]:
        if value is None:
            return None
        # CTR 은 퍼센트 값이므로 0~100 밖이면 잘라낸다.
        return round(max(0.0, min(100.0, float(value))), 2)

    @field_validator("face_detected", mode="before")
    @classmethod
    def _none_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("text_detected", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("recommendations", mode="before")
    @classmethod
    def _clean_recommendations(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list):
            return value
        return [str(item).strip() for item in value if item is not None and str(item).strip()]

    @model_validator(mode="after")
    def _default_ctr(self) -> "ThumbnailScore":
        if self.predicted_ctr is None:
            self.predicted_ctr = round(self.overall_score / 10, 1)
        return self

    def raw(self) -> Dict[str, Any]:
        """DB 의 ai_analysis_raw 컬럼에 남길 모델 원본 형태(camelCase)."""
        return self.model_dump(by_alias=True)


class ScoringResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    thumbnails: List[ThumbnailScore]
    winner: int
    # 대체 점수로 만들어진 결과인지 표시한다. 클라이언트 응답에는 포함하지 않는다.
    degraded: bool = Field(default=False, exclude=True)

    def is_winner(self, score: ThumbnailScore) -> bool:
        return score.thumbnail_index == self.winner


def extract_json_object(text: Optional[str]) -> Any:
    """모델 텍스트에서 JSON 객체를 꺼낸다. 코드 펜스나 앞뒤 설명 문장은 무시한다."""
    if not text or not text.strip():
        raise ScoringParseError("empty model output")

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    match = _JSON_OBJECT_PATTERN.search(text)
    if not match:
        raise ScoringParseError("no JSON object found in model output")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ScoringParseError(f"invalid JSON in model output: {exc}") from exc


def parse_scoring_response(text: Optional[str], expected_count: int) -> ScoringResult:
    data = extract_json_object(text)
    if not isinstance(data, dict):
        raise ScoringParseError("model output is not a JSON object")

    try:
        result = ScoringResult.model_validate(data)
    except ValidationError as exc:
        raise ScoringParseError(f"model output does not match the scoring schema: {exc}") from exc

    return _normalize(result, expected_count)


def _normalize(result: ScoringResult, expected_count: int) -> ScoringResult:
    if len(result.thumbnails) != expected_count:
        raise ScoringParseError(
            f"expected {expected_count} thumbnail scores, got {len(result.thumbnails)}"
        )

    # thumbnailIndex 가 빠진 항목은 배열 위치를 인덱스로 사용한다.
    indexes = [
        score.thumbnail_index if score.thumbnail_index is not None else position
        for position, score in enumerate(result.thumbnails)
    ]
    if sorted(indexes) != list(range(expected_count)):
        raise ScoringParseError(f"thumbnail indexes {indexes} do not cover 0..{expected_count - 1}")
    if not 0 <= result.winner < expected_count:
        raise ScoringParseError(f"winner index {result.winner} is out of range")

    ordered = [
        score.model_copy(update={"thumbnail_index": index})
        for index, score in sorted(zip(indexes, result.thumbnails), key=lambda pair: pair[0])
    ]
    return result.model_copy(update={"thumbnails": ordered})


def pick_winner(scores: List[ThumbnailScore]) -> int:
    """overall_score 가 가장 높은 인덱스. 동점이면 앞쪽 인덱스가 이긴다."""
    if not scores:
        raise ValueError("cannot pick a winner from an empty score list")
    return max(range(len(scores)), key=lambda index: scores[index].overall_score)


def generate_fallback_scores(count: int, rng: Optional[random.Random] = None) -> ScoringResult:
    rng = rng or random.Random()
    thumbnails: List[ThumbnailScore] = []

    for index in range(count):
        overall = rng.randrange(60, 90)
        thumbnails.append(
            ThumbnailScore(
                thumbnail_index=index,
                overall_score=overall,
                scores=ScoreBreakdown(
                    face_visibility=rng.randrange(60, 100),
                    text_readability=rng.randrange(60, 100),
                    color_contrast=rng.randrange(60, 100),
                    visual_clarity=rng.randrange(60, 100),
                    emotional_impact=rng.randrange(60, 100),
                ),
                predicted_ctr=overall / 10,
                face_detected=rng.random() > 0.5,
                text_detected="",
                recommendations=list(FALLBACK_RECOMMENDATIONS),
            )
        )

    return ScoringResult(thumbnails=thumbnails, winner=pick_winner(thumbnails), degraded=True)
