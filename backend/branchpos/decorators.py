# Overview: Request decorators and helpers shared by the API routes.

from functools import wraps
from flask import current_app, g, jsonify, request

from .errors import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from .scoping import BypassScope

# Most specific first: MissingFilterError is an AuthorizationError.
ERROR_STATUS = (
    (ValidationError, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ConfigurationError, 500),
)


def require_actor(f):
    """
    Require an authenticated actor.

    The authentication collaborator is the ACTOR_LOADER config value, a
    callable taking the request and returning an Actor or None. Sets g.actor.

    Returns 401 when no loader is configured or it yields no actor.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        loader = current_app.config.get("ACTOR_LOADER")
        actor = loader(request) if loader else None
        if actor is None:
            return jsonify({"error": "Authentication required"}), 401

        g.actor = actor
        return f(*args, **kwargs)

    return decorated_function


def _truthy(value) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def requested_branch_id():
    """Requested branch from ?branch_id= or the JSON body, None when absent."""
    raw = request.args.get("branch_id")
    if raw is None and request.is_json:
        raw = (request.get_json(silent=True) or {}).get("branch_id")
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError("branch_id must be an integer", details={"branch_id": raw})


def requested_bypass():
    """BypassScope when the caller asked for ?all_branches=1, else None."""
    raw = request.args.get("all_branches")
    if raw is None and request.is_json:
        raw = (request.get_json(silent=True) or {}).get("all_branches")
    if raw is None or not _truthy(raw):
        return None
    return BypassScope.for_actor(g.actor, reason=f"{request.method} {request.path}")


def scope_kwargs() -> dict:
    """requested_branch_id / bypass keyword arguments for service calls."""
    return {"requested_branch_id": requested_branch_id(), "bypass": requested_bypass()}


def error_response(exc: ServiceError):
    for kind, status in ERROR_STATUS:
        if isinstance(exc, kind):
            break
    else:
        status = 500
    if status == 500:
        current_app.logger.error("Service misconfiguration: %s %s", exc.message, exc.details)
    return jsonify({"error": exc.message, "details": exc.details}), status
