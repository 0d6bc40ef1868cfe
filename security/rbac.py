import hmac
from functools import wraps
from flask import current_app, g, jsonify, request

from services.errors import ConfigurationError

# role -> config key holding the shared secret presented as a bearer token
ROLE_SECRETS = {
    "ADMIN": "ADMIN_API_TOKEN",
    "CRON": "CRON_SECRET",
}

def _presented_token(allow_query: bool):
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    if allow_query:
        # cron schedulers that cannot set headers pass ?secret=
        return request.args.get("secret") or None
    return None

def _role_for_token(token: str):
    for role, key in ROLE_SECRETS.items():
        secret = current_app.config.get(key)
        if secret and hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8")):
            return role
    return None

def current_actor() -> str:
    role = getattr(g, "role", None)
    return role.lower() if role else "public"

def require_roles(*role_names: str):
    """
    Usage: @require_roles("ADMIN") or @require_roles("ADMIN", "CRON")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not any(current_app.config.get(ROLE_SECRETS[r]) for r in role_names):
                current_app.logger.error("No secret configured for %s", "/".join(role_names))
                raise ConfigurationError("Server misconfiguration")

            token = _presented_token(allow_query="CRON" in role_names)
            if not token:
                return jsonify(error="Authentication required"), 401

            role = _role_for_token(token)
            if role is None:
                return jsonify(error="Unauthorized"), 401
            if role not in role_names:
                return jsonify(error="Forbidden"), 403

            g.role = role
            return fn(*args, **kwargs)
        return wrapper
    return decorator
