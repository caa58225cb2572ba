import logging

import requests

from config.settings import SupabaseSettings
from thumbnail.application.exceptions import UnauthorizedError
from thumbnail.application.port.identity_port import IdentityPort
from thumbnail.domain.analysis import AuthUser

logger = logging.getLogger(__name__)


class SupabaseIdentityAdapter(IdentityPort):
    """Supabase Auth 의 /auth/v1/user 로 access token 을 사용자 정보로 바꾼다."""

    def __init__(self, settings: SupabaseSettings | None = None, session: requests.Session | None = None):
        self.settings = settings or SupabaseSettings()
        self.session = session or requests.Session()

    @property
    def user_endpoint(self) -> str:
        return f"{self.settings.url.rstrip('/')}/auth/v1/user"

    def get_user_from_token(self, token: str) -> AuthUser:
        if not self.settings.url:
            logger.error("[SupabaseIdentityAdapter] SUPABASE_URL 이 설정되지 않았습니다.")
            raise UnauthorizedError()

        headers = {
            "Authorization": f"Bearer {token}",
            "apikey": self.settings.anon_key,
        }
        try:
            resp = self.session.get(self.user_endpoint, headers=headers, timeout=self.settings.timeout_seconds)
        except requests.RequestException as exc:
            logger.warning("[SupabaseIdentityAdapter] 인증 서버 호출 실패: %s", exc)
            raise UnauthorizedError() from exc

        if not resp.ok:
            logger.info("[SupabaseIdentityAdapter] 토큰 거부: status=%s", resp.status_code)
            raise UnauthorizedError()

        try:
            data = resp.json()
        except ValueError as exc:
            raise UnauthorizedError() from exc

        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise UnauthorizedError()
        return AuthUser(id=user_id, email=data.get("email"))
