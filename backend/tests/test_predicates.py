# Overview: Pytest coverage for scoping-field detection in filters.

from sqlalchemy import and_, not_, or_

from branchpos.models import Customer, MachineSale
from branchpos.scoping import DEFAULT_CATALOG, contains_scoping_field

ENTRY = DEFAULT_CATALOG.entry("Customer")


class TestMappingFilters:
    def test_top_level_key(self):
        assert contains_scoping_field(ENTRY, {"branch_id": 1, "code": "X"})

    def test_no_scoping_key(self):
        assert not contains_scoping_field(ENTRY, {"code": "X"})

    def test_nested_list_of_mappings(self):
        criteria = {"code": "X", "or": [{"name": "a"}, {"and": [{"branch_id": 2}]}]}
        assert contains_scoping_field(ENTRY, criteria)

    def test_empty_and_none(self):
        assert not contains_scoping_field(ENTRY, {})
        assert not contains_scoping_field(ENTRY, None)


class TestClauseFilters:
    def test_simple_comparison(self):
        assert contains_scoping_field(ENTRY, Customer.branch_id == 1)

    def test_deep_and_or_not(self):
        clause = or_(
            Customer.name == "a",
            and_(Customer.code == "b", not_(or_(Customer.phone == "c", Customer.branch_id.in_([1, 2])))),
        )
        assert contains_scoping_field(ENTRY, clause)

    def test_clause_without_scoping_column(self):
        clause = and_(Customer.name == "a", or_(Customer.code == "b", Customer.phone.is_(None)))
        assert not contains_scoping_field(ENTRY, clause)

    def test_other_model_branch_column_also_counts(self):
        # Matching is by column name, the same way mapping keys are matched.
        assert contains_scoping_field(ENTRY, MachineSale.branch_id == 1)


class TestBounds:
    def test_depth_bound_returns_false(self):
        criteria = {"branch_id": 1}
        for _ in range(40):
            criteria = [criteria]
        assert not contains_scoping_field(ENTRY, criteria)
        assert contains_scoping_field(ENTRY, criteria, max_depth=100)

    def test_node_budget_returns_false(self):
        criteria = [{"branch_id": 1}] + [{"code": str(i)} for i in range(20)]
        assert not contains_scoping_field(ENTRY, criteria, max_nodes=10)
        assert contains_scoping_field(ENTRY, criteria)
