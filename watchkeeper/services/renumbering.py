"""
Renumbering utility.

After an owner adds or removes endpoints, their endpoints are renamed
"#1", "#2", ... in ascending id order. The endpoints table is rewritten
whole, so the rewrite must carry every other owner's rows through
untouched; both halves are computed from one locked read.
"""

from ..logging_config import get_logger
from ..models import Endpoint
from ..persistence.record_store import Record, RecordStore, Table

logger = get_logger(__name__)


def display_name_for(position: int) -> str:
    return f"#{position}"


def renumber_records(records: list[Record], owner_id: int) -> tuple[list[Record], list[Record]]:
    """
    Split rows into other owners' and this owner's, and rename this owner's.

    Rows that are not mappings, or belong to someone else, are passed
    through unchanged.

    Returns:
        (full table content to write back, renumbered rows of owner_id)
    """
    others: list[Record] = []
    owned: list[Record] = []
    for record in records:
        if isinstance(record, dict) and record.get("owner_id") == owner_id:
            owned.append(record)
        else:
            others.append(record)

    owned.sort(key=lambda r: str(r.get("id", "")))
    renumbered = [{**record, "display_name": display_name_for(i)} for i, record in enumerate(owned, start=1)]
    return others + renumbered, renumbered


async def renumber(store: RecordStore, owner_id: int) -> list[Endpoint]:
    """
    Reassign sequential display names to one owner's endpoints.

    Args:
        store: Record store holding the endpoints table
        owner_id: Owner whose endpoints are renamed

    Returns:
        The owner's endpoints in their new order
    """
    renumbered = await store.mutate(Table.ENDPOINTS, lambda records: renumber_records(records, owner_id))
    logger.debug("Endpoints renumbered", owner_id=owner_id, count=len(renumbered))
    return [Endpoint.model_validate(record) for record in renumbered]
