# breeding_planner/api/heat_planning/conftest.py
"""
서비스/라우트 테스트용 인메모리 저장소

Firestore 저장소와 같은 메서드를 제공하며, 실패를 흉내 낼 수 있습니다.
"""

from dataclasses import replace
from datetime import date

import pytest

from breeding_planner.api.heat_planning.engine import PlanningOptions
from breeding_planner.api.heat_planning.services import HeatPlanningService
from breeding_planner.core.errors import PersistenceError, RepositoryFetchError
from breeding_planner.models.animal import Animal, AnimalSex, HeatEntrySource, HeatHistoryEntry
from breeding_planner.models.breeding_record import ConfirmedHeatCycle, PlannedLitter
from breeding_planner.services.breeding_repositories import confirmed_cycle_id

OWNER_ID = 'owner-1'
TODAY = date(2025, 6, 1)


class FakeAnimalRepository:
    def __init__(self, animals=()):
        self.animals = {a.animal_id: a for a in animals}
        self.fail_reads = False

    def list_animals(self, owner_id):
        if self.fail_reads:
            raise RepositoryFetchError(f"Failed to load animals of owner {owner_id}")
        return [a for a in self.animals.values() if a.owner_id == owner_id]

    def append_history(self, animal_id, entry):
        animal = self.animals[animal_id]
        self.animals[animal_id] = replace(animal, heat_history=list(animal.heat_history) + [entry])


class FakeCycleRepository:
    def __init__(self, animal_repository):
        self.animal_repository = animal_repository
        self.cycles = []
        self.fail_writes = False

    def list_confirmed_cycles(self, animal_ids):
        ids = set(animal_ids)
        return [c for c in self.cycles if c.animal_id in ids]

    def record_confirmed_heat(self, animal_id, cycle_date, notes=None):
        if self.fail_writes:
            raise PersistenceError("Failed to save confirmed heat", animal_id)
        cycle = ConfirmedHeatCycle(confirmed_cycle_id(animal_id, cycle_date), animal_id, cycle_date, notes)
        self.cycles.append(cycle)
        self.animal_repository.append_history(
            animal_id, HeatHistoryEntry(cycle_date, notes, HeatEntrySource.CONFIRMED_PREDICTION))
        return cycle


class FakeBreedingRepository:
    def __init__(self):
        self.litters = []
        self.fail_writes = False

    def list_planned_litters(self, animal_ids):
        ids = set(animal_ids)
        return [l for l in self.litters if l.animal_id in ids]

    def create_planned_litter(self, animal_id, expected_heat_date, notes=None):
        if self.fail_writes:
            raise PersistenceError("Failed to save planned litter", animal_id)
        litter = PlannedLitter(f"litter-{len(self.litters) + 1}", animal_id, expected_heat_date, notes=notes)
        self.litters.append(litter)
        return litter


class FakeReminderService:
    def __init__(self):
        self.stored = {}
        self.sync_calls = 0
        self.fail_writes = False

    def sync_heat_reminders(self, owner_id, reminders):
        self.sync_calls += 1
        if self.fail_writes:
            raise PersistenceError("Failed to save heat reminders")
        self.stored[owner_id] = {r.reminder_id: r for r in reminders}
        return len(reminders)


def make_animals():
    return [
        Animal(animal_id='bella', owner_id=OWNER_ID, name='Bella', sex=AnimalSex.FEMALE,
               birthdate=date(2021, 3, 1), heat_history=[HeatHistoryEntry(date(2024, 1, 1))]),
        Animal(animal_id='luna', owner_id=OWNER_ID, name='Luna', sex=AnimalSex.FEMALE,
               birthdate=date(2022, 5, 10)),
        Animal(animal_id='rex', owner_id=OWNER_ID, name='Rex', sex=AnimalSex.MALE,
               birthdate=date(2020, 1, 1)),
        Animal(animal_id='other', owner_id='owner-2', name='Other', sex=AnimalSex.FEMALE),
    ]


@pytest.fixture
def animal_repository():
    return FakeAnimalRepository(make_animals())


@pytest.fixture
def cycle_repository(animal_repository):
    return FakeCycleRepository(animal_repository)


@pytest.fixture
def breeding_repository():
    return FakeBreedingRepository()


@pytest.fixture
def reminder_service():
    return FakeReminderService()


@pytest.fixture
def heat_planning_service(animal_repository, cycle_repository, breeding_repository, reminder_service):
    return HeatPlanningService(
        animal_repository=animal_repository,
        cycle_repository=cycle_repository,
        breeding_repository=breeding_repository,
        reminder_service=reminder_service,
        options=PlanningOptions(horizon_years=2),
        today_provider=lambda: TODAY,
    )
