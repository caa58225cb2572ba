from pydantic_settings import BaseSettings, SettingsConfigDict


class OpenAISettings(BaseSettings):
    """OPENAI_* 환경 변수에서 비전 모델 호출 설정을 읽는다."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_", env_file=".env", extra="ignore")

    api_key: str | None = None
    model: str = "gpt-4o"
    max_tokens: int = 2000
    temperature: float = 0.7
    timeout_seconds: float = 60.0


class SupabaseSettings(BaseSettings):
    """SUPABASE_* 환경 변수에서 인증 서버 접속 정보를 읽는다."""

    model_config = SettingsConfigDict(env_prefix="SUPABASE_", env_file=".env", extra="ignore")

    url: str = ""
    anon_key: str = ""
    timeout_seconds: float = 10.0
