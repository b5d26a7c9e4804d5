# backend/branchpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/branchpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///branchpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Authentication collaborator: callable(request) -> Actor | None.
    # Left unset here; deployments plug in their session layer.
    ACTOR_LOADER = None

    # Fail startup when the resource catalog and the mapped models disagree.
    SCOPE_CATALOG_STRICT = True
