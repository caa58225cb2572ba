from dotenv import load_dotenv
from dependency_injector import containers, providers

from config.settings import OpenAISettings, SupabaseSettings
from thumbnail.adapter.output.openai_vision_adapter import OpenAIVisionAdapter
from thumbnail.adapter.output.supabase_identity_adapter import SupabaseIdentityAdapter
from thumbnail.application.usecase.analysis_history_usecase import AnalysisHistoryUseCase
from thumbnail.application.usecase.analyze_thumbnails_usecase import AnalyzeThumbnailsUseCase
from thumbnail.domain.analysis import FREE_TIER_MONTHLY_LIMIT
from thumbnail.infrastructure.repository.analysis_repository_impl import AnalysisRepositoryImpl


class Container(containers.DeclarativeContainer):
    config = providers.Configuration()

    # Settings
    openai_settings = providers.Singleton(OpenAISettings)

    supabase_settings = providers.Singleton(SupabaseSettings)

    # Adapters
    identity = providers.Singleton(
        SupabaseIdentityAdapter,
        settings=supabase_settings
    )

    vision_model = providers.Singleton(
        OpenAIVisionAdapter,
        settings=openai_settings
    )

    analysis_repository = providers.Singleton(
        AnalysisRepositoryImpl
    )

    # Use cases
    analyze_thumbnails_usecase = providers.Factory(
        AnalyzeThumbnailsUseCase,
        identity=identity,
        repository=analysis_repository,
        vision_model=vision_model,
        free_tier_limit=config.free_tier_limit
    )

    analysis_history_usecase = providers.Factory(
        AnalysisHistoryUseCase,
        identity=identity,
        repository=analysis_repository
    )


def create_container() -> Container:
    load_dotenv()

    container = Container()
    container.config.from_dict({
        'free_tier_limit': FREE_TIER_MONTHLY_LIMIT,
    })
    return container
