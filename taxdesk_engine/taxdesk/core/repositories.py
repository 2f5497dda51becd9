"""
Repository layer for keyed records.

Engines receive a repository instead of touching storage themselves, so the
same engine runs against memory in tests and against files in a deployment.
"""
import copy
import json
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from .utils import atomic_write_json


class BaseRepository(ABC):
    """Common record operations over a tenant's list of dict records."""

    def __init__(self, tenant_id: str, entity_type: str):
        self.tenant_id = tenant_id
        self.entity_type = entity_type

    @abstractmethod
    def load_data(self) -> List[Dict[str, Any]]:
        """Return a copy of all records."""

    @abstractmethod
    def save_data(self, data: List[Dict[str, Any]]) -> None:
        """Replace all records."""

    def get_count(self) -> int:
        return len(self.load_data())

    def find_by_key(self, key_field: str, key_value: Any) -> Optional[Dict[str, Any]]:
        for record in self.load_data():
            if record.get(key_field) == key_value:
                return record
        return None

    def bulk_upsert(self, records: List[Dict[str, Any]], key_field: str = "id") -> Dict[str, int]:
        """Insert or update records by `key_field`; records without a key are skipped."""
        current_data = self.load_data()
        existing_map = {record.get(key_field): record for record in current_data}

        created = updated = 0
        now = datetime.now().isoformat()

        for record in records:
            key_value = record.get(key_field)
            if not key_value:
                continue
            record = dict(record, last_updated=now)
            if key_value in existing_map:
                existing_map[key_value].update(record)
                updated += 1
            else:
                record.setdefault('created_at', now)
                existing_map[key_value] = record
                created += 1

        updated_data = list(existing_map.values())
        self.save_data(updated_data)
        return {"created": created, "updated": updated, "total": len(updated_data)}


class InMemoryRepository(BaseRepository):
    def __init__(self, tenant_id: str, entity_type: str):
        super().__init__(tenant_id, entity_type)
        self._data: List[Dict[str, Any]] = []

    def load_data(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._data)

    def save_data(self, data: List[Dict[str, Any]]) -> None:
        self._data = copy.deepcopy(data)


class JsonFileRepository(BaseRepository):
    """Records kept in `<base_dir>/<entity_type>/<tenant>_<entity_type>.json`."""

    def __init__(self, tenant_id: str, entity_type: str, base_dir: Union[str, Path]):
        super().__init__(tenant_id, entity_type)
        self.entity_dir = Path(base_dir) / entity_type
        self.entity_dir.mkdir(parents=True, exist_ok=True)

    def _get_data_file(self) -> Path:
        return self.entity_dir / f"{self.tenant_id}_{self.entity_type}.json"

    def load_data(self) -> List[Dict[str, Any]]:
        data_file = self._get_data_file()
        if not data_file.exists():
            return []
        with open(data_file, 'r', encoding='utf-8') as f:
            return json.load(f)

    def save_data(self, data: List[Dict[str, Any]]) -> None:
        atomic_write_json(str(self._get_data_file()), data)
