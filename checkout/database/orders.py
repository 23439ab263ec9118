"""Local order completion records"""

from datetime import datetime
from typing import Any, Optional

from ..models.checkout import OrderCompletion


class OrderRecordDatabase:
    """In-memory completion records, a backup of the backend order state"""

    def __init__(self):
        self.records: dict[str, OrderCompletion] = {}

    def record_completion(
        self,
        order_id: str,
        status: str,
        payment_details: Optional[dict[str, Any]] = None,
    ) -> OrderCompletion:
        """Create or update the completion record for an order"""
        record = OrderCompletion(
            order_id=order_id,
            status=status,
            payment_details=payment_details or {},
            completed_at=datetime.utcnow().isoformat(),
        )
        self.records[order_id] = record
        return record

    def get_record(self, order_id: str) -> Optional[OrderCompletion]:
        """Get a completion record by order ID"""
        return self.records.get(order_id)

    def list_records(self, limit: int = 50) -> list[OrderCompletion]:
        """List recent completion records"""
        records = list(self.records.values())
        records.sort(key=lambda r: r.completed_at, reverse=True)
        return records[:limit]


# Singleton instance
order_records = OrderRecordDatabase()
