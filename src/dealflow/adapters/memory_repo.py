from datetime import datetime, timezone

from dealflow.domain.ports import DealRecord, DealRepository


class InMemoryDealRepository(DealRepository):
    def __init__(self) -> None:
        self._items: list[DealRecord] = []
        self._next_id = 1

    def save(self, record: DealRecord) -> int:
        rec = DealRecord(**record)  # type: ignore[typeddict-item]
        rec["id"] = self._next_id
        rec["created_at"] = datetime.now(timezone.utc).isoformat()
        self._next_id += 1
        self._items.append(rec)
        return rec["id"]

    def list_for_user(self, user_id: int) -> list[DealRecord]:
        return [dict(r) for r in reversed(self._items) if r.get("user_id") == user_id]  # type: ignore[misc]

    def delete_for_user(self, *, deal_id: int, user_id: int) -> bool:
        before = len(self._items)
        self._items = [
            r for r in self._items if not (r.get("id") == deal_id and r.get("user_id") == user_id)
        ]
        return len(self._items) < before

    def all(self) -> list[DealRecord]:
        return list(self._items)
