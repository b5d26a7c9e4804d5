# Overview: Pytest coverage for the static scan of unscoped model access.

from pathlib import Path
import textwrap

import branchpos
from branchpos.scoping.audit import scan_paths, scan_source


def _scan(source):
    return scan_source(textwrap.dedent(source), "sample.py")


class TestScanSource:
    def test_direct_query_flagged(self):
        findings = _scan("""
            def load(customer_id):
                return db.session.query(Customer).filter_by(id=customer_id).first()
        """)
        assert len(findings) == 1
        assert findings[0].resource_type == "Customer"
        assert findings[0].function == "load"
        assert findings[0].operation == "query"

    def test_chained_bulk_write_reported_as_write(self):
        findings = _scan("""
            def close(sale_id):
                db.session.query(MachineSale).filter_by(id=sale_id).update({"status": "COMPLETED"})
        """)
        assert [f.operation for f in findings] == ["update"]

    def test_session_get_select_and_model_query(self):
        findings = _scan("""
            def a(session, pk):
                return session.get(Installment, pk)

            def b():
                return select(Payment)

            def c(pk):
                return Customer.query.get(pk)
        """)
        assert sorted(f.resource_type for f in findings) == ["Customer", "Installment", "Payment"]

    def test_column_arguments_resolve_to_model(self):
        findings = _scan("""
            def ids():
                return db.session.query(MachineSale.id).all()

            def amounts():
                return select(Payment.amount_cents)
        """)
        assert [(f.function, f.resource_type) for f in findings] == [
            ("ids", "MachineSale"),
            ("amounts", "Payment"),
        ]

    def test_escape_hatch_in_function_clears_it(self):
        findings = _scan("""
            def load(session, scope, pk):
                row = session.get(Customer, pk)
                return require_in_scope(row, scope)
        """)
        assert findings == []

    def test_pragma_accepts_line(self):
        findings = _scan("""
            def load(pk):
                return db.session.query(Customer).get(pk)  # scope: checked
        """)
        assert findings == []

    def test_unscoped_models_ignored(self):
        assert _scan("rows = db.session.query(Branch).all()") == []


class TestScanPackage:
    def test_package_has_no_unscoped_access(self):
        findings = scan_paths([Path(branchpos.__file__).parent])
        assert findings == [], "\n".join(f.format() for f in findings)

    def test_scan_file(self, tmp_path):
        path = tmp_path / "rogue.py"
        path.write_text("def leak():\n    return db.session.query(Payment).all()\n", encoding="utf-8")
        findings = scan_paths([tmp_path])
        assert len(findings) == 1
        assert findings[0].line == 2
        assert "rogue.py" in findings[0].format()
