"""Request parameter extraction for the Flask API.

Turns the two transport shapes (query string for GET, JSON body for POST)
into one flat parameter mapping. Validation of the values is left to
``pipeline.filter_request``.
"""

from typing import Any

from flask import request
from werkzeug.exceptions import BadRequest

from contracts.history_contracts import ClientInputError


def _json_body() -> dict[str, Any]:
    """Return the JSON object body of the current request.

    An empty body or a JSON ``null`` is treated as no parameters.

    Raises:
        ClientInputError: If the body is not valid JSON or not an object
    """
    raw = request.get_data(cache=True)
    if not raw or not raw.strip():
        return {}
    try:
        payload = request.get_json(force=True, silent=False)
    except BadRequest as exc:
        raise ClientInputError("Invalid JSON body") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ClientInputError("Request body must be a JSON object")
    return payload


def _request_params() -> dict[str, Any]:
    """Merge query string and (for POST) JSON body into one mapping.

    Repeated query keys keep their first value. Body keys override query
    keys of the same name.

    Returns:
        Flat parameter mapping
    """
    params: dict[str, Any] = request.args.to_dict(flat=True)
    if request.method == "POST":
        params.update(_json_body())
    return params
