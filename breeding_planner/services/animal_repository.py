# breeding_planner/services/animal_repository.py
import logging
from typing import List

from google.cloud.firestore_v1.base_query import FieldFilter

from breeding_planner.models.animal import Animal
from .firestore_service import FirestoreRepository

logger = logging.getLogger(__name__)


class AnimalRepository(FirestoreRepository):
    """
    Firestore 'animals' 컬렉션 조회.
    프로필 생성/수정은 다른 서비스가 담당하며 여기서는 읽기만 합니다.
    """
    collection_name = 'animals'

    def list_animals(self, owner_id: str) -> List[Animal]:
        query = self.collection_ref.where(filter=FieldFilter("owner_id", "==", owner_id))
        documents = self._stream(query, f"animals of owner {owner_id}")

        animals = []
        for data in documents:
            data.setdefault('animal_id', data.pop('_doc_id'))
            data.pop('_doc_id', None)
            if not data.get('name'):
                logger.warning(f"Animal {data['animal_id']} has no name; using its id")
                data['name'] = data['animal_id']
            animals.append(Animal.from_dict(data))

        animals.sort(key=lambda a: (a.name.lower(), a.animal_id))
        logger.info(f"Loaded {len(animals)} animals for owner {owner_id}")
        return animals
