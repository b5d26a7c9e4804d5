"""
Pytest fixtures for BranchPOS backend tests.

Provides test database setup, two-branch isolation fixtures, actors and a
test client whose requests authenticate through X-Actor-* headers.
"""

import pytest

from branchpos import create_app
from branchpos.extensions import db
from branchpos.models import Branch, Customer, WarehouseMachine
from branchpos.scoping import Actor


def header_actor_loader(request):
    """
    Test authentication collaborator.

    X-Actor-Id (required), X-Actor-Role (TENANT_BOUND | GLOBAL),
    X-Actor-Branches (comma separated ids), X-Actor-Home (id).
    """
    actor_id = request.headers.get("X-Actor-Id")
    if not actor_id:
        return None
    raw = request.headers.get("X-Actor-Branches", "")
    branch_ids = [int(x) for x in raw.split(",") if x.strip()]
    home = request.headers.get("X-Actor-Home")
    home = int(home) if home else None
    if request.headers.get("X-Actor-Role", "TENANT_BOUND") == "GLOBAL":
        return Actor.global_actor(actor_id, home_tenant_id=home, tenant_ids=branch_ids)
    return Actor.tenant_bound(actor_id, branch_ids, home_tenant_id=home)


def actor_headers(actor: Actor) -> dict:
    headers = {
        "X-Actor-Id": actor.id,
        "X-Actor-Role": actor.role.value,
        "X-Actor-Branches": ",".join(str(i) for i in sorted(actor.authorized_tenant_ids)),
    }
    if actor.home_tenant_id is not None:
        headers["X-Actor-Home"] = str(actor.home_tenant_id)
    return headers


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ACTOR_LOADER': header_actor_loader,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def branch_a(db_session):
    """Create Branch A (first tenant)."""
    branch = Branch(name="Branch A - Downtown", code="A", is_active=True)
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def branch_b(db_session):
    """Create Branch B (second tenant)."""
    branch = Branch(name="Branch B - Harbour", code="B", is_active=True)
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope='function')
def customer_a(db_session, branch_a):
    customer = Customer(branch_id=branch_a.id, code="C-A-001", name="Alice Trading")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, branch_b):
    customer = Customer(branch_id=branch_b.id, code="C-B-001", name="Bob Retail")
    db_session.add(customer)
    db_session.commit()
    return customer


def make_unit(db_session, branch, serial: str) -> WarehouseMachine:
    unit = WarehouseMachine(
        branch_id=branch.id,
        serial_number=serial,
        model="T650",
        manufacturer="Verifone",
    )
    db_session.add(unit)
    db_session.commit()
    return unit


@pytest.fixture(scope='function')
def unit_a(db_session, branch_a):
    return make_unit(db_session, branch_a, "SN-A-0001")


@pytest.fixture(scope='function')
def unit_b(db_session, branch_b):
    return make_unit(db_session, branch_b, "SN-B-0001")


@pytest.fixture(scope='function')
def clerk_a(branch_a):
    """Branch-bound actor authorized for Branch A only."""
    return Actor.tenant_bound("clerk-a", [branch_a.id], display_name="Clerk A")


@pytest.fixture(scope='function')
def clerk_b(branch_b):
    return Actor.tenant_bound("clerk-b", [branch_b.id], display_name="Clerk B")


@pytest.fixture(scope='function')
def admin():
    """Global actor without a home branch."""
    return Actor.global_actor("admin", display_name="Head Office")
