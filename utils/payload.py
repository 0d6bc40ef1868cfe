from flask import request

from services.errors import ValidationFailed


def json_body() -> dict:
    """The request's JSON object; an absent or unparsable body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationFailed("Request body must be a JSON object", fields=["body"])
    return data


def optional_text(data: dict, *keys: str):
    """First present value among ``keys``; it must be text when given."""
    for key in keys:
        value = data.get(key)
        if value is None or value == "":
            continue
        if not isinstance(value, str):
            raise ValidationFailed(f"{key} must be text", fields=[key])
        return value
    return None
