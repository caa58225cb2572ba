from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from thumbnail.domain.analysis import Analysis, Thumbnail, UserProfile


class AnalysisRepositoryPort(ABC):
    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserProfile]:
        pass

    @abstractmethod
    def insert_analysis(self, analysis: Analysis) -> Analysis:
        pass

    @abstractmethod
    def insert_thumbnails(self, thumbnails: List[Thumbnail]) -> List[Thumbnail]:
        pass

    @abstractmethod
    def get_analysis(self, analysis_id: str) -> Optional[Analysis]:
        pass

    @abstractmethod
    def list_analyses(
        self,
        user_id: str,
        offset: int,
        limit: int,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Analysis], int]:
        pass

    @abstractmethod
    def update_analysis(self, analysis_id: str, changes: Dict[str, Any]) -> Analysis:
        pass

    @abstractmethod
    def delete_analysis(self, analysis_id: str) -> None:
        pass
