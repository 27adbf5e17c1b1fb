"""
IdeaForge
Blueprint helpers shared by the API modules.
"""

from flask import request

from ideaforge.core.exceptions import ValidationError


def get_json_body(required: bool = False) -> dict:
    """Return the JSON object body, or ``{}`` when the request has none.

    Raises:
        ValidationError: body is present but not a JSON object, or missing
            when ``required``.
    """
    data = request.get_json(silent=True)
    if data is None:
        if required or request.get_data():
            raise ValidationError("Request body must be a JSON object")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_pagination(default_limit=200, max_limit=1000):
    """Read limit/offset query params.

    Query params:
        limit    max items (default 200, capped at max_limit)
        offset: starting position (default 0)

    Returns:
        (limit, offset)
    """
    try:
        limit = min(max(int(request.args.get("limit", default_limit)), 1), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    return limit, offset
