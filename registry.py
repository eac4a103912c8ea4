# registry.py
from typing import Dict, Iterable, Iterator, Mapping, Optional

from models import TrackedEntity
from quote_source import ItemMetadata


class EntityRegistry:
    """The fixed set of tracked items, in configuration order."""

    def __init__(self, tracked_items: Mapping[int, str]):
        self._entities: Dict[int, TrackedEntity] = {
            int(item_id): TrackedEntity(id=int(item_id), display_name=name)
            for item_id, name in tracked_items.items()
        }

    def merge_metadata(self, records: Iterable[ItemMetadata]) -> int:
        """Overwrite name/examine/members/limit for tracked ids; others are ignored.

        Returns how many tracked entities were updated.
        """
        updated = 0
        for record in records:
            entity = self._entities.get(record.id)
            if entity is None:
                continue
            entity.display_name = record.name
            entity.examine = record.examine
            entity.is_members_only = record.members
            entity.buy_limit = record.limit
            updated += 1
        return updated

    def get(self, entity_id: int) -> Optional[TrackedEntity]:
        return self._entities.get(entity_id)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __iter__(self) -> Iterator[TrackedEntity]:
        return iter(list(self._entities.values()))

    def __len__(self) -> int:
        return len(self._entities)
