# Overview: Flask CLI command groups for bootstrap, branch management and scope auditing.

# backend/branchpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--branch "Main Branch"] [--code MAIN]
#   Create tables and a default branch (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Branch management:
# - python -m flask branches list
# - python -m flask branches create --name "North" --code "NORTH"
#
# Branch isolation:
# - python -m flask scoping catalog
#   Print the enrolled resources and their scoping columns.
# - python -m flask scoping audit [PATH ...]
#   Scan sources for direct access to branch-owned models; exits 1 on findings.

from pathlib import Path

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Branch
from .scoping import DEFAULT_CATALOG
from .scoping.audit import scan_paths

PACKAGE_DIR = Path(__file__).resolve().parent


@click.group('system')
def system_group():
    """System bootstrap and maintenance."""


@system_group.command('init')
@click.option('--branch', 'branch_name', default='Main Branch', help='Default branch name')
@click.option('--code', 'branch_code', default='MAIN', help='Default branch code')
@with_appcontext
def init_system(branch_name, branch_code):
    """Create tables and the default branch."""
    db.create_all()

    branch = db.session.query(Branch).filter_by(code=branch_code).first()
    if branch:
        click.echo(f"SKIP Branch '{branch_code}' already exists (ID: {branch.id})")
        return

    branch = Branch(name=branch_name, code=branch_code, is_active=True)
    db.session.add(branch)
    db.session.commit()
    click.echo(f"PASS Created branch: {branch.name} (ID: {branch.id}, Code: {branch.code})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('branches')
def branches_group():
    """Branch (tenant) management."""


@branches_group.command('list')
@with_appcontext
def list_branches():
    """List all branches."""
    branches = db.session.query(Branch).order_by(Branch.id).all()

    if not branches:
        click.echo("No branches found.")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<15} {'Active'}")
    click.echo("="*60)
    for branch in branches:
        active_str = "Yes" if branch.is_active else "No"
        click.echo(f"{branch.id:<5} {branch.name:<30} {branch.code or '-':<15} {active_str}")
    click.echo("="*60 + "\n")


@branches_group.command('create')
@click.option('--name', required=True, help='Branch name')
@click.option('--code', required=True, help='Short code (unique)')
@with_appcontext
def create_branch_cli(name, code):
    """Create a new branch."""
    existing = db.session.query(Branch).filter_by(code=code).first()
    if existing:
        click.echo(f"FAIL Branch with code '{code}' already exists")
        return

    branch = Branch(name=name, code=code, is_active=True)
    db.session.add(branch)
    db.session.commit()

    click.echo(f"PASS Created branch: {branch.name} (ID: {branch.id}, Code: {branch.code})")


@click.group('scoping')
def scoping_group():
    """Branch isolation inspection."""


@scoping_group.command('catalog')
def show_catalog():
    """Print the resource catalog."""
    click.echo(f"{'Resource':<24} {'Scoping columns'}")
    for entry in sorted(DEFAULT_CATALOG, key=lambda e: e.resource_type):
        click.echo(f"{entry.resource_type:<24} {', '.join(entry.scoping_fields)}")


@scoping_group.command('audit')
@click.argument('paths', nargs=-1, type=click.Path(exists=True))
def audit_sources(paths):
    """Flag direct ORM access to branch-owned models (defaults to this package)."""
    findings = scan_paths(paths or [PACKAGE_DIR])
    for finding in findings:
        click.echo(f"FAIL {finding.format()}")
    if findings:
        raise SystemExit(1)
    click.echo("PASS No unscoped access to branch-owned models found.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(branches_group)
    app.cli.add_command(scoping_group)
