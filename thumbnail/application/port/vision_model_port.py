from abc import ABC, abstractmethod
from typing import List


class VisionModelPort(ABC):
    @abstractmethod
    def score_thumbnails(self, prompt: str, image_urls: List[str]) -> str:
        """프롬프트와 이미지 목록을 한 번에 보내고 모델의 원문 텍스트를 반환"""
        pass
