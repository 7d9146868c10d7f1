from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Callable, Optional

import numpy as np
import pytest

from timeclock.biometrics.model import CacheStats, TemplateEntry
from timeclock.biometrics.service import BiometricService
from timeclock.biometrics.template_cache import InMemoryTemplateCache
from timeclock.cache.memory_cache import MemoryCache
from timeclock.common.validators import normalize_national_id
from timeclock.core.enums import EmployeeStatus, PunchSource, PunchType
from timeclock.core.exceptions import DuplicatePunchError
from timeclock.employees.model import EmployeeIdentity
from timeclock.punches.model import PunchRecord
from timeclock.punches.recorder import PunchRecorder
from timeclock.punches.service import PunchService
from timeclock.schedules.model import WorkSchedule
from timeclock.schedules.resolver import ScheduleResolver
from timeclock.system_settings.service import SystemSettingsService


def make_template(seed: int) -> np.ndarray:
    return np.random.default_rng(seed).normal(0.0, 0.1, 128)


def near(template: np.ndarray, seed: int = 999, scale: float = 0.001) -> np.ndarray:
    """A fresh capture of the same face: tiny noise around ``template``."""
    return template + np.random.default_rng(seed).normal(0.0, scale, 128)


class InMemoryEmployees:
    def __init__(self, employees=()):
        self.by_id: dict[int, EmployeeIdentity] = {e.employee_id: e for e in employees}

    def add(self, employee: EmployeeIdentity) -> None:
        self.by_id[employee.employee_id] = employee

    def get_by_id(self, employee_id: int) -> Optional[EmployeeIdentity]:
        return self.by_id.get(int(employee_id))

    def get_by_national_id(self, national_id: str) -> Optional[EmployeeIdentity]:
        digits = normalize_national_id(national_id)
        return next((e for e in self.by_id.values() if normalize_national_id(e.national_id) == digits), None)

    def list_active(self):
        return [e for e in self.by_id.values() if e.is_active]


class InMemoryTemplates:
    """Template store backed by the fake employee table."""

    def __init__(self, employees: InMemoryEmployees):
        self._employees = employees
        self.templates: dict[int, np.ndarray] = {}
        self.calls: list[str] = []

    def _entry(self, employee_id: int) -> Optional[TemplateEntry]:
        e = self._employees.get_by_id(employee_id)
        if e is None:
            return None
        return TemplateEntry(e.employee_id, e.name, e.national_id, self.templates.get(e.employee_id))

    def list_enrolled(self):
        self.calls.append("list_enrolled")
        return [self._entry(i) for i in sorted(self.templates) if self._employees.get_by_id(i)]

    def get_entry(self, employee_id: int):
        self.calls.append("get_entry")
        return self._entry(employee_id)

    def save_template(self, employee_id: int, template):
        self.calls.append("save_template")
        if self._employees.get_by_id(employee_id) is None:
            return None
        self.templates[int(employee_id)] = template
        return self._entry(employee_id)

    def clear_template(self, employee_id: int) -> bool:
        self.calls.append("clear_template")
        return self.templates.pop(int(employee_id), None) is not None


@dataclass
class InMemorySchedules:
    by_department: dict[tuple[int, int], WorkSchedule] = field(default_factory=dict)
    primary: dict[int, WorkSchedule] = field(default_factory=dict)
    legacy: dict[int, WorkSchedule] = field(default_factory=dict)

    def get_for_department(self, *, employee_id: int, department_id: int):
        return self.by_department.get((employee_id, department_id))

    def get_for_primary_department(self, *, employee_id: int):
        return self.primary.get(employee_id)

    def get_legacy(self, *, employee_id: int):
        return self.legacy.get(employee_id)


class InMemoryPunches:
    """Punch storage enforcing the (employee, date, type) unique key."""

    def __init__(self):
        self.rows: dict[tuple[int, date, PunchType], PunchRecord] = {}
        self.inserts = 0

    def list_for_day(self, employee_id: int, work_date: date):
        rows = [r for (e, d, _), r in self.rows.items() if e == employee_id and d == work_date]
        return sorted(rows, key=lambda r: r.punch_time)

    def get_for_type(self, employee_id: int, work_date: date, punch_type: PunchType):
        return self.rows.get((employee_id, work_date, PunchType(punch_type)))

    def insert(self, *, employee_id, work_date, punch_type, punch_time, schedule_id=None,
               source=PunchSource.FACE, latitude=None, longitude=None) -> PunchRecord:
        key = (employee_id, work_date, PunchType(punch_type))
        if key in self.rows:
            raise DuplicatePunchError(f"{key} exists")
        self.inserts += 1
        record = PunchRecord(
            punch_id=self.inserts,
            employee_id=employee_id,
            work_date=work_date,
            punch_type=PunchType(punch_type),
            punch_time=punch_time,
            schedule_id=schedule_id,
            source=source,
            latitude=latitude,
            longitude=longitude,
        )
        self.rows[key] = record
        return record


@dataclass
class InMemorySettings:
    values: dict[str, str] = field(default_factory=dict)
    reads: int = 0

    def get_value(self, key: str) -> Optional[str]:
        self.reads += 1
        return self.values.get(key)


class DownTemplateCache:
    """Template cache whose backend is unreachable."""

    def __init__(self):
        self.populate_calls = 0

    def connect(self) -> bool:
        return False

    def is_available(self) -> bool:
        return False

    def close(self) -> None:
        pass

    def get_all(self):
        return None

    def populate(self, entries) -> bool:
        self.populate_calls += 1
        return False

    def upsert_one(self, entry) -> bool:
        return False

    def remove_one(self, employee_id) -> bool:
        return False

    def invalidate_all(self) -> bool:
        return False

    def stats(self) -> CacheStats:
        return CacheStats(available=False)


class RecordingExecutor:
    """Executor that queues work until ``run_pending`` is called."""

    def __init__(self):
        self.pending: list[tuple[Future, Callable, tuple]] = []

    def submit(self, fn, *args):
        future: Future = Future()
        self.pending.append((future, fn, args))
        return future

    def run_pending(self) -> None:
        pending, self.pending = self.pending, []
        for future, fn, args in pending:
            future.set_result(fn(*args))

    def shutdown(self, wait: bool = True) -> None:
        pass


@dataclass
class World:
    employees: InMemoryEmployees
    templates: InMemoryTemplates
    schedules: InMemorySchedules
    punches: InMemoryPunches
    settings_repo: InMemorySettings
    memory_cache: MemoryCache
    template_cache: object
    executor: RecordingExecutor
    biometrics: BiometricService
    recorder: PunchRecorder
    service: PunchService
    clock: list

    def enroll(self, employee_id: int, name: str, national_id: str, *, seed: int, status=EmployeeStatus.ACTIVE):
        self.employees.add(EmployeeIdentity(employee_id, name, national_id, status=status))
        template = make_template(seed)
        self.templates.templates[employee_id] = template
        return template


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 10, 8, 0, 0)


@pytest.fixture
def office_schedule() -> WorkSchedule:
    return WorkSchedule(
        schedule_id=1,
        name="Office",
        start_time=time(8, 0),
        end_time=time(17, 0),
        break_start=time(12, 0),
        break_end=time(13, 0),
    )


@pytest.fixture
def make_world(fixed_now):
    def _make(*, template_cache=None, cooldown_seconds: int = 60) -> World:
        clock = [fixed_now]
        employees = InMemoryEmployees()
        templates = InMemoryTemplates(employees)
        schedules = InMemorySchedules()
        punches = InMemoryPunches()
        settings_repo = InMemorySettings()
        memory_cache = MemoryCache()
        if template_cache is None:
            template_cache = InMemoryTemplateCache(ttl_seconds=3600)
            template_cache.connect()
        executor = RecordingExecutor()

        biometrics = BiometricService(templates, template_cache, employees, executor=executor)
        recorder = PunchRecorder(punches, cache=memory_cache, cooldown_seconds=cooldown_seconds)
        service = PunchService(
            biometrics,
            employees,
            ScheduleResolver.for_repository(schedules),
            punches,
            recorder,
            SystemSettingsService(settings_repo, memory_cache, default_tolerance_minutes=30),
            memory_cache,
            clock=lambda: clock[0],
        )
        return World(
            employees=employees,
            templates=templates,
            schedules=schedules,
            punches=punches,
            settings_repo=settings_repo,
            memory_cache=memory_cache,
            template_cache=template_cache,
            executor=executor,
            biometrics=biometrics,
            recorder=recorder,
            service=service,
            clock=clock,
        )

    return _make


@pytest.fixture
def world(make_world) -> World:
    return make_world()


@pytest.fixture
def template_factory():
    return make_template


@pytest.fixture
def capture():
    return near


@pytest.fixture
def schedules_repo() -> InMemorySchedules:
    return InMemorySchedules()


@pytest.fixture
def punches_repo() -> InMemoryPunches:
    return InMemoryPunches()


@pytest.fixture
def down_cache() -> DownTemplateCache:
    return DownTemplateCache()
