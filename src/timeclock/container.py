from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from .biometrics.mysql_template_repository import MySQLTemplateRepository
from .biometrics.service import BiometricService
from .biometrics.template_cache import TemplateCache, build_template_cache
from .biometrics.warmup import PeriodicCacheWarmer
from .cache.memory_cache import MemoryCache
from .database.connection import DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .punches.mysql_punch_repository import MySQLPunchRepository
from .punches.recorder import PunchRecorder
from .punches.service import PunchService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.resolver import ScheduleResolver
from .system_settings.mysql_settings_repository import MySQLSettingsRepository
from .system_settings.service import SystemSettingsService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    employees_repo: MySQLEmployeeRepository
    templates_repo: MySQLTemplateRepository
    schedules_repo: MySQLScheduleRepository
    punches_repo: MySQLPunchRepository
    settings_repo: MySQLSettingsRepository

    memory_cache: MemoryCache
    template_cache: TemplateCache

    settings_service: SystemSettingsService
    biometric_service: BiometricService
    punch_service: PunchService
    warmer: Optional[PeriodicCacheWarmer] = None

    def shutdown(self) -> None:
        if self.warmer is not None:
            self.warmer.stop()
        self.biometric_service.shutdown()
        self.template_cache.close()


def build_container(*, settings: ModuleType) -> Container:
    conn = DatabaseConnection.from_settings(getattr(settings, "DB_CONFIG"))

    employees_repo = MySQLEmployeeRepository(conn)
    templates_repo = MySQLTemplateRepository(conn)
    schedules_repo = MySQLScheduleRepository(conn)
    punches_repo = MySQLPunchRepository(conn)
    settings_repo = MySQLSettingsRepository(conn)

    memory_cache = MemoryCache()
    template_cache = build_template_cache(
        getattr(settings, "REDIS_URL", ""),
        ttl_seconds=int(getattr(settings, "TEMPLATE_CACHE_TTL_SECONDS")),
        socket_timeout=float(getattr(settings, "REDIS_SOCKET_TIMEOUT")),
    )
    template_cache.connect()

    settings_service = SystemSettingsService(
        settings_repo,
        memory_cache,
        default_tolerance_minutes=int(getattr(settings, "PUNCH_TOLERANCE_MINUTES")),
    )
    biometric_service = BiometricService(
        templates_repo,
        template_cache,
        employees_repo,
        match_threshold=float(getattr(settings, "FACE_MATCH_THRESHOLD")),
        verify_threshold=float(getattr(settings, "FACE_VERIFY_THRESHOLD")),
    )
    recorder = PunchRecorder(
        punches_repo,
        cache=memory_cache,
        cooldown_seconds=int(getattr(settings, "DUPLICATE_COOLDOWN_SECONDS")),
    )
    punch_service = PunchService(
        biometric_service,
        employees_repo,
        ScheduleResolver.for_repository(schedules_repo),
        punches_repo,
        recorder,
        settings_service,
        memory_cache,
        offline_max_age_days=int(getattr(settings, "OFFLINE_SYNC_MAX_AGE_DAYS")),
    )

    warmer = None
    warmup_seconds = int(getattr(settings, "TEMPLATE_CACHE_WARMUP_SECONDS", 0))
    if warmup_seconds > 0:
        warmer = PeriodicCacheWarmer(biometric_service, interval_seconds=warmup_seconds)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        templates_repo=templates_repo,
        schedules_repo=schedules_repo,
        punches_repo=punches_repo,
        settings_repo=settings_repo,
        memory_cache=memory_cache,
        template_cache=template_cache,
        settings_service=settings_service,
        biometric_service=biometric_service,
        punch_service=punch_service,
        warmer=warmer,
    )
