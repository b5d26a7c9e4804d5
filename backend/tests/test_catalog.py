# Overview: Pytest coverage for the resource catalog and its startup check.

import pytest
import sqlalchemy as sa

from branchpos.errors import ConfigurationError
from branchpos.extensions import db
from branchpos.models import Branch, Customer
from branchpos.scoping import DEFAULT_CATALOG, OperationKind, ResourceCatalog, verify_catalog


def _mapped_models():
    return [mapper.class_ for mapper in db.Model.registry.mappers]


class Stray:
    """Unmapped stand-in for a model someone forgot to enroll."""
    __table__ = sa.Table(
        "stray_rows",
        sa.MetaData(),
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("branch_id", sa.Integer),
    )


class TestCatalog:
    def test_every_branch_owned_model_enrolled(self):
        verify_catalog(DEFAULT_CATALOG, _mapped_models())

    def test_branch_itself_is_not_scoped(self):
        assert Branch not in DEFAULT_CATALOG
        assert Customer in DEFAULT_CATALOG

    def test_unknown_entry_raises(self):
        with pytest.raises(ConfigurationError):
            DEFAULT_CATALOG.entry("Nope")

    def test_describe(self):
        descriptor = DEFAULT_CATALOG.describe(Customer, "read-many")
        assert descriptor.scoping_fields == ("branch_id",)
        assert descriptor.operation_kind is OperationKind.READ_MANY

    def test_unenrolled_model_with_branch_column_fails(self):
        with pytest.raises(ConfigurationError) as exc:
            verify_catalog(DEFAULT_CATALOG, _mapped_models() + [Stray])
        assert any("Stray" in p for p in exc.value.details["problems"])

    def test_entry_naming_missing_column_fails(self):
        catalog = ResourceCatalog({"Customer": ("tenant_id",)})
        with pytest.raises(ConfigurationError):
            verify_catalog(catalog, [Customer])

    def test_entry_without_fields_rejected(self):
        with pytest.raises(ConfigurationError):
            ResourceCatalog({"Customer": ()})
