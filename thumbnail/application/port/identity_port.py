from abc import ABC, abstractmethod

from thumbnail.domain.analysis import AuthUser


class IdentityPort(ABC):
    @abstractmethod
    def get_user_from_token(self, token: str) -> AuthUser:
        """토큰을 사용자 식별자로 바꾼다. 실패하면 UnauthorizedError"""
        pass
