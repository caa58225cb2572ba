import logging
from typing import List

from openai import APIStatusError, OpenAI, OpenAIError

from config.settings import OpenAISettings
from thumbnail.application.exceptions import VisionModelError
from thumbnail.application.port.vision_model_port import VisionModelPort

logger = logging.getLogger(__name__)


class OpenAIVisionAdapter(VisionModelPort):
    """
    OpenAI chat completions 로 썸네일 이미지를 채점한다.
    - 텍스트 프롬프트와 이미지 URL 들을 하나의 user 메시지에 담아 한 번만 호출한다.
    - SDK 기본 재시도는 끈다.
    """

    def __init__(self, settings: OpenAISettings | None = None, client: OpenAI | None = None):
        self.settings = settings or OpenAISettings()
        self._client = client

    @property
    def client(self) -> OpenAI:
        # API 키는 실제 호출 시점에 확인한다. (인증/한도 검사보다 앞서 실패하지 않도록)
        if self._client is None:
            if not self.settings.api_key:
                raise VisionModelError("OpenAI API key not configured")
            self._client = OpenAI(
                api_key=self.settings.api_key,
                max_retries=0,
                timeout=self.settings.timeout_seconds,
            )
        return self._client

    def build_messages(self, prompt: str, image_urls: List[str]) -> List[dict]:
        content = [{"type": "text", "text": prompt}]
        content.extend({"type": "image_url", "image_url": {"url": url}} for url in image_urls)
        return [{"role": "user", "content": content}]

    def score_thumbnails(self, prompt: str, image_urls: List[str]) -> str:
        logger.info(
            "[OpenAIVisionAdapter] 모델 호출: model=%s, images=%d",
            self.settings.model,
            len(image_urls),
        )
        try:
            completion = self.client.chat.completions.create(
                model=self.settings.model,
                messages=self.build_messages(prompt, image_urls),
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
            )
        except APIStatusError as exc:
            logger.error("[OpenAIVisionAdapter] API 오류: status=%s", exc.status_code)
            raise VisionModelError(f"OpenAI API error: {exc.response.text}") from exc
        except OpenAIError as exc:
            logger.error("[OpenAIVisionAdapter] 호출 실패: %s", exc)
            raise VisionModelError(f"OpenAI API error: {exc}") from exc

        if not completion.choices:
            raise VisionModelError("OpenAI API error: empty choices in response")
        return completion.choices[0].message.content or ""
