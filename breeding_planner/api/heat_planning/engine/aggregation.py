# breeding_planner/api/heat_planning/engine/aggregation.py
"""
예측 결과의 그룹화/필터링과 교배 가능 암컷 목록

모든 함수는 이미 생성된 결과만 다루며 예측을 다시 계산하지 않습니다.
"""

from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from breeding_planner.core.errors import MissingFieldError
from breeding_planner.models.animal import Animal
from breeding_planner.models.heat_prediction import FertileDog, HeatPrediction
from breeding_planner.utils.datetime_utils import DateTimeUtils

PredictionMap = Dict[str, List[HeatPrediction]]


def group_by_animal(predictions: Iterable[HeatPrediction]) -> PredictionMap:
    """animal_id -> 날짜순 예측 목록. 반려견 순서는 처음 등장한 순서를 따릅니다."""
    grouped: PredictionMap = OrderedDict()
    for prediction in predictions:
        grouped.setdefault(prediction.animal_id, []).append(prediction)
    for animal_id in grouped:
        grouped[animal_id].sort(key=lambda p: p.date)
    return grouped


def display_years(as_of: date, horizon_years: int, predictions: Iterable[HeatPrediction] = (),
                  include_data_years: bool = False) -> List[int]:
    """기본 표시 연도(올해부터 horizon 개). include_data_years 면 데이터에 있는 연도도 포함합니다."""
    years = {as_of.year + offset for offset in range(max(horizon_years, 1))}
    if include_data_years:
        years.update(p.year for p in predictions)
    return sorted(years)


def group_by_year(prediction_map: Mapping[str, Sequence[HeatPrediction]],
                  years: Iterable[int]) -> Dict[int, PredictionMap]:
    """year -> animal_id -> 예측 목록. 예측이 없는 반려견은 해당 연도에서 빈 목록을 가집니다."""
    view: Dict[int, PredictionMap] = OrderedDict()
    for year in sorted(set(years)):
        view[year] = OrderedDict(
            (animal_id, [p for p in predictions if p.year == year])
            for animal_id, predictions in prediction_map.items()
        )
    return view


def is_breeding_eligible(animal: Animal, age: Optional[float], max_breeding_age_years: float) -> bool:
    if not animal.is_female or animal.sterilization_date is not None:
        return False
    # 생년월일을 모르면 나이 제한을 적용할 수 없으므로 목록에 남겨 둡니다.
    return age is None or age < max_breeding_age_years


def build_fertile_dogs(animals: Iterable[Animal], as_of: date,
                       breeding_warning_age_years: float = 6.0,
                       max_breeding_age_years: float = 8.0) -> Tuple[List[FertileDog], List[MissingFieldError]]:
    """
    교배 가능한 암컷 목록과 수집된 누락 필드 문제를 반환합니다.
    이름순으로 정렬하고 동명이면 ID 순입니다.
    """
    dogs: List[FertileDog] = []
    issues: List[MissingFieldError] = []

    for animal in animals:
        age = DateTimeUtils.age_in_years(animal.birthdate, as_of)
        if not is_breeding_eligible(animal, age, max_breeding_age_years):
            continue
        if animal.birthdate is None:
            issues.append(MissingFieldError(
                f"Birthdate missing for {animal.name}; age is unknown",
                animal.animal_id, 'birthdate'))
        dogs.append(FertileDog(
            animal_id=animal.animal_id,
            name=animal.name,
            birthdate=animal.birthdate,
            age=round(age, 1) if age is not None else None,
            needs_warning=age is not None and age >= breeding_warning_age_years,
        ))

    dogs.sort(key=lambda dog: (dog.name.lower(), dog.animal_id))
    return dogs, issues


def filter_by_name(fertile_dogs: Sequence[FertileDog], prediction_map: Mapping[str, Sequence[HeatPrediction]],
                   search: Optional[str]) -> Tuple[List[FertileDog], PredictionMap]:
    """
    이름에 search 가 포함된(대소문자 무시) 반려견만 남깁니다.
    남은 반려견의 예측 목록은 그대로 유지됩니다.
    """
    term = (search or '').strip().lower()
    if not term:
        return list(fertile_dogs), OrderedDict((k, list(v)) for k, v in prediction_map.items())

    dogs = [dog for dog in fertile_dogs if term in dog.name.lower()]
    keep = {dog.animal_id for dog in dogs}
    return dogs, OrderedDict((k, list(v)) for k, v in prediction_map.items() if k in keep)


def filter_by_ids(prediction_map: Mapping[str, Sequence[HeatPrediction]],
                  animal_ids: Optional[Iterable[str]]) -> PredictionMap:
    """선택한 반려견만 남깁니다. animal_ids 가 비어 있으면 전체를 반환합니다."""
    selected = set(animal_ids or ())
    if not selected:
        return OrderedDict((k, list(v)) for k, v in prediction_map.items())
    return OrderedDict((k, list(v)) for k, v in prediction_map.items() if k in selected)
