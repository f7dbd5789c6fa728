"""
Services package for Watchkeeper.

Catalog resolution, renumbering, and the owner- and admin-facing
operations that sit on top of the record store and the session manager.
"""

from .access_gate import AccessDecision, AccessGate, AccessVerdict
from .catalog_resolver import CatalogResolver
from .endpoint_service import EndpointService, generate_endpoint_id
from .renumbering import display_name_for, renumber, renumber_records
from .user_service import SystemStats, UserService

__all__ = [
    "AccessDecision",
    "AccessGate",
    "AccessVerdict",
    "CatalogResolver",
    "EndpointService",
    "SystemStats",
    "UserService",
    "display_name_for",
    "generate_endpoint_id",
    "renumber",
    "renumber_records",
]
