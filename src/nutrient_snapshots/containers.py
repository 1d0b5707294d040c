"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from nutrient_snapshots.adapters.fdc_client import HttpxFdcClient
from nutrient_snapshots.adapters.supabase_food_log_repository import (
    SupabaseFoodLogRepository,
)
from nutrient_snapshots.config import Settings
from nutrient_snapshots.services.cache import InMemoryCache
from nutrient_snapshots.services.fdc import FdcService
from nutrient_snapshots.services.food_logs import FoodLogService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    fdc_service: FdcService
    food_log_service: FoodLogService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    fdc_client = HttpxFdcClient.create(
        api_key=resolved_settings.fdc_api_key,
        base_url=resolved_settings.fdc_base_url,
    )
    fdc_service = FdcService(
        fdc_client=fdc_client,
        cache=InMemoryCache(),
        debug=resolved_settings.fdc_debug,
    )
    food_log_service = FoodLogService(SupabaseFoodLogRepository(supabase_client))

    async def close_resources() -> None:
        await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        fdc_service=fdc_service,
        food_log_service=food_log_service,
        close_resources=close_resources,
    )
