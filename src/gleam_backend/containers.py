"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from gleam_backend.adapters.openai_analysis_client import OpenAIAnalysisClient
from gleam_backend.adapters.openai_plan_client import OpenAIPlanClient
from gleam_backend.adapters.supabase_aggregate_repository import (
    SupabaseAggregateRepository,
)
from gleam_backend.adapters.supabase_scan_repository import SupabaseScanRepository
from gleam_backend.adapters.supabase_token_verifier import SupabaseTokenVerifier
from gleam_backend.config import Settings
from gleam_backend.services.aggregates import AggregateStore
from gleam_backend.services.analysis import AnalysisService
from gleam_backend.services.auth import AuthService
from gleam_backend.services.counters import ScanCounterReconciler
from gleam_backend.services.plans import PlanService
from gleam_backend.services.scans import ScanService
from gleam_backend.services.streaks import StreakCalculator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    auth_service: AuthService
    analysis_service: AnalysisService
    scan_service: ScanService
    reconciler: ScanCounterReconciler
    plan_service: PlanService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    scan_repository = SupabaseScanRepository(supabase_client)
    aggregates = AggregateStore(SupabaseAggregateRepository(supabase_client))
    reconciler = ScanCounterReconciler(scans=scan_repository, aggregates=aggregates)
    analysis_client = OpenAIAnalysisClient.create(resolved_settings.openai_api_key)
    plan_client = OpenAIPlanClient.create(resolved_settings.openai_api_key)

    scan_service = ScanService(
        repository=scan_repository,
        aggregates=aggregates,
        reconciler=reconciler,
        streaks=StreakCalculator(),
        default_limit=resolved_settings.history_default_limit,
        max_limit=resolved_settings.history_max_limit,
    )
    analysis_service = AnalysisService(
        client=analysis_client,
        model=resolved_settings.openai_analysis_model,
        timeout_seconds=resolved_settings.oracle_timeout_seconds,
    )
    plan_service = PlanService(
        scans=scan_repository,
        aggregates=aggregates,
        client=plan_client,
        model=resolved_settings.openai_plan_model,
        min_scans=resolved_settings.min_scans_for_plan,
        refresh_interval=resolved_settings.plan_refresh_interval,
        context_scan_limit=resolved_settings.plan_context_scan_limit,
        timeout_seconds=resolved_settings.oracle_timeout_seconds,
    )

    async def close_resources() -> None:
        await analysis_client.close()
        await plan_client.close()

    return AppContainer(
        settings=resolved_settings,
        auth_service=AuthService(SupabaseTokenVerifier(supabase_client)),
        analysis_service=analysis_service,
        scan_service=scan_service,
        reconciler=reconciler,
        plan_service=plan_service,
        close_resources=close_resources,
    )
