"""Bedrock protocol versions loaded into an empty catalog at startup."""

from ..models import EndpointKind, VersionCatalogEntry

BEDROCK_VERSIONS: dict[int, str] = {
    827: "1.21.100",
    818: "1.21.90",
    800: "1.21.80",
    786: "1.21.70",
    776: "1.21.60",
    766: "1.21.50",
    748: "1.21.42",
    729: "1.21.30",
    712: "1.21.20",
    686: "1.21.2",
    685: "1.21.0",
    671: "1.20.80",
    662: "1.20.71",
    649: "1.20.61",
    630: "1.20.50",
    622: "1.20.40",
    618: "1.20.30",
    594: "1.20.10",
    589: "1.20.0",
    582: "1.19.80",
    575: "1.19.70",
    568: "1.19.63",
    560: "1.19.50",
    554: "1.19.30",
    544: "1.19.20",
    527: "1.19.1",
    503: "1.18.30",
    475: "1.18.0",
    448: "1.17.10",
    422: "1.16.201",
}


def seed_entries() -> list[VersionCatalogEntry]:
    return [
        VersionCatalogEntry(kind=EndpointKind.BEDROCK, protocol_id=protocol_id, version_name=name)
        for protocol_id, name in BEDROCK_VERSIONS.items()
    ]
