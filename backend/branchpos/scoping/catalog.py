"""
Resource Catalog: which entity types are enrolled in branch isolation.

The table below lives next to the models. An entity missing here is
not protected at all, which is why verify_catalog() refuses to start the app
when a mapped model carries a branch column but is not enrolled.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from ..errors import ConfigurationError


class OperationKind(str, enum.Enum):
    READ_MANY = "read-many"
    READ_ONE_UNIQUE = "read-one-unique"
    WRITE_MANY = "write-many"
    WRITE_ONE_UNIQUE = "write-one-unique"
    AGGREGATE = "aggregate"

    @property
    def is_unique(self) -> bool:
        return self in (OperationKind.READ_ONE_UNIQUE, OperationKind.WRITE_ONE_UNIQUE)

    @property
    def is_write(self) -> bool:
        return self in (OperationKind.WRITE_MANY, OperationKind.WRITE_ONE_UNIQUE)


@dataclass(frozen=True)
class CatalogEntry:
    resource_type: str
    scoping_fields: tuple[str, ...]

    @property
    def primary_field(self) -> str:
        return self.scoping_fields[0]


@dataclass(frozen=True)
class ResourceDescriptor:
    resource_type: str
    scoping_fields: tuple[str, ...]
    operation_kind: OperationKind


# resource type (mapped class name) -> accepted scoping columns.
# The first column is the one injected when a filter names none.
SCOPED_RESOURCES = {
    "Customer": ("branch_id",),
    "WarehouseMachine": ("branch_id",),
    "PosMachine": ("branch_id",),
    "MachineSale": ("branch_id",),
    "Installment": ("branch_id",),
    "Payment": ("branch_id",),
    "MachineMovementLog": ("branch_id",),
    "SystemLog": ("branch_id",),
}

# Models allowed to carry a branch column without enrollment.
UNSCOPED_RESOURCES = frozenset()

TENANT_COLUMN_HINTS = ("branch_id",)


def resource_type_of(resource) -> str:
    """Accept a mapped class, an instance, or a plain resource type name."""
    if isinstance(resource, str):
        return resource
    if isinstance(resource, type):
        return resource.__name__
    return type(resource).__name__


class ResourceCatalog:
    def __init__(self, entries: dict[str, tuple[str, ...]]):
        self._entries = {}
        for resource_type, fields in entries.items():
            fields = tuple(fields)
            if not fields:
                raise ConfigurationError(f"Catalog entry {resource_type} has no scoping fields")
            self._entries[resource_type] = CatalogEntry(resource_type, fields)

    def __contains__(self, resource) -> bool:
        return resource_type_of(resource) in self._entries

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def resource_types(self) -> frozenset[str]:
        return frozenset(self._entries)

    def entry(self, resource) -> CatalogEntry:
        resource_type = resource_type_of(resource)
        try:
            return self._entries[resource_type]
        except KeyError:
            raise ConfigurationError(
                f"Resource type {resource_type!r} is not enrolled in the branch catalog",
                details={"resource_type": resource_type},
            )

    def describe(self, resource, kind: OperationKind) -> ResourceDescriptor:
        entry = self.entry(resource)
        return ResourceDescriptor(entry.resource_type, entry.scoping_fields, OperationKind(kind))


DEFAULT_CATALOG = ResourceCatalog(SCOPED_RESOURCES)


def verify_catalog(catalog: ResourceCatalog, models, unscoped=UNSCOPED_RESOURCES) -> None:
    """
    Cross-check the catalog against the mapped models.

    Raises ConfigurationError when an entry names an unknown model or a
    missing column, or when a model with a branch column is not enrolled.
    """
    by_name = {model.__name__: model for model in models}
    problems = []

    for entry in catalog:
        model = by_name.get(entry.resource_type)
        if model is None:
            problems.append(f"{entry.resource_type}: no mapped model")
            continue
        columns = set(model.__table__.columns.keys())
        for field in entry.scoping_fields:
            if field not in columns:
                problems.append(f"{entry.resource_type}: missing scoping column {field}")

    for name, model in by_name.items():
        if name in catalog or name in unscoped:
            continue
        table = getattr(model, "__table__", None)
        if table is None:
            continue
        hinted = [c for c in TENANT_COLUMN_HINTS if c in table.columns]
        if hinted:
            problems.append(f"{name}: carries {', '.join(hinted)} but is not enrolled")

    if problems:
        raise ConfigurationError("Branch catalog does not match the schema", details={"problems": problems})
