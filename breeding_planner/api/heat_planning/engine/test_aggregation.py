# breeding_planner/api/heat_planning/engine/test_aggregation.py
from datetime import date

from breeding_planner.api.heat_planning.engine.aggregation import (
    build_fertile_dogs, display_years, filter_by_ids, filter_by_name, group_by_animal, group_by_year,
)
from breeding_planner.core.errors import MissingFieldError
from breeding_planner.models.animal import Animal, AnimalSex
from breeding_planner.models.heat_prediction import Confidence, HeatPrediction, PredictionStatus

AS_OF = date(2025, 6, 1)


def _animal(animal_id, name, sex=AnimalSex.FEMALE, birthdate=date(2021, 6, 1), **kwargs):
    return Animal(animal_id=animal_id, owner_id='owner-1', name=name, sex=sex, birthdate=birthdate, **kwargs)


def _prediction(animal_id, name, day, sequence=1):
    return HeatPrediction(
        prediction_id=f"{animal_id}-{sequence}", animal_id=animal_id, animal_name=name,
        date=day, year=day.year, status=PredictionStatus.PREDICTED, confidence=Confidence.LOW,
        interval=180, projected_date=day,
    )


def test_fertile_dogs_exclude_males_sterilized_and_old_females():
    animals = [
        _animal('a1', 'Bella'),
        _animal('a2', 'Max', sex=AnimalSex.MALE),
        _animal('a3', 'Coco', sterilization_date=date(2023, 1, 1)),
        _animal('a4', 'Granny', birthdate=date(2016, 1, 1)),
        _animal('a5', 'Daisy', birthdate=date(2018, 6, 1)),
    ]
    dogs, issues = build_fertile_dogs(animals, AS_OF)

    assert [d.name for d in dogs] == ['Bella', 'Daisy']
    assert dogs[0].age == 4.0
    assert dogs[0].needs_warning is False
    # 7세: 교배 가능하지만 권장 연령 초과
    assert dogs[1].needs_warning is True
    assert issues == []


def test_missing_birthdate_keeps_dog_and_reports_issue():
    dogs, issues = build_fertile_dogs([_animal('a1', 'Bella', birthdate=None)], AS_OF)

    assert len(dogs) == 1
    assert dogs[0].age is None
    assert dogs[0].needs_warning is False
    assert len(issues) == 1
    assert isinstance(issues[0], MissingFieldError)
    assert issues[0].field_name == 'birthdate'


def test_group_by_animal_sorts_each_bucket():
    predictions = [
        _prediction('a1', 'Bella', date(2026, 1, 1), 2),
        _prediction('a2', 'Luna', date(2025, 8, 1)),
        _prediction('a1', 'Bella', date(2025, 7, 1), 1),
    ]
    grouped = group_by_animal(predictions)

    assert list(grouped) == ['a1', 'a2']
    assert [p.date for p in grouped['a1']] == [date(2025, 7, 1), date(2026, 1, 1)]


def test_group_by_year():
    grouped = group_by_animal([
        _prediction('a1', 'Bella', date(2025, 7, 1), 1),
        _prediction('a1', 'Bella', date(2026, 1, 1), 2),
        _prediction('a2', 'Luna', date(2026, 2, 1)),
    ])
    view = group_by_year(grouped, display_years(AS_OF, 2))

    assert list(view) == [2025, 2026]
    assert [p.prediction_id for p in view[2025]['a1']] == ['a1-1']
    assert view[2025]['a2'] == []
    assert len(view[2026]['a1']) == 1


def test_display_years_can_include_data_years():
    predictions = [_prediction('a1', 'Bella', date(2024, 12, 26))]
    assert display_years(AS_OF, 3) == [2025, 2026, 2027]
    assert display_years(AS_OF, 1, predictions, include_data_years=True) == [2024, 2025]


def test_name_filter_keeps_full_prediction_set():
    animals = [_animal('a1', 'Bella'), _animal('a2', 'Max')]
    dogs, _ = build_fertile_dogs(animals, AS_OF)
    bella_predictions = [_prediction('a1', 'Bella', date(2025, 7, 1), 1),
                         _prediction('a1', 'Bella', date(2025, 12, 28), 2)]
    grouped = group_by_animal(bella_predictions + [_prediction('a2', 'Max', date(2025, 8, 1))])

    filtered_dogs, filtered_map = filter_by_name(dogs, grouped, 'bell')

    assert [d.name for d in filtered_dogs] == ['Bella']
    assert list(filtered_map) == ['a1']
    assert filtered_map['a1'] == bella_predictions
    # 원본은 변경되지 않음
    assert list(grouped) == ['a1', 'a2']


def test_empty_name_filter_returns_everything():
    dogs, _ = build_fertile_dogs([_animal('a1', 'Bella'), _animal('a2', 'Luna')], AS_OF)
    filtered_dogs, _ = filter_by_name(dogs, {}, '   ')
    assert len(filtered_dogs) == 2


def test_filter_by_ids():
    grouped = group_by_animal([_prediction('a1', 'Bella', date(2025, 7, 1)),
                               _prediction('a2', 'Luna', date(2025, 8, 1))])
    assert list(filter_by_ids(grouped, ['a2'])) == ['a2']
    assert list(filter_by_ids(grouped, None)) == ['a1', 'a2']
