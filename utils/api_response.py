"""
Standardized API response helpers.

Provides consistent JSON response format across all API endpoints:

    Success:  {"success": true, "data": {...}, "message": "..."}
    Error:    {"success": false, "error": "message", "code": "CONFLICT"}
    Warning:  {"success": true, "data": {...}, "warning": "..."}

Usage:
    from utils.api_response import api_success, api_error, api_result

    return api_success(data={'id': 1}, message='Booking created')
    return api_error('Party size is required', status=400)
    return api_result(seat_party(booking_id))
"""

from flask import abort, jsonify, request
from typing import Any

from utils.messages import MESSAGES
from utils.results import ErrorKind, HTTP_STATUS


def api_success(
    data: dict | list | None = None,
    message: str | None = None,
    warning: str | None = None,
    status: int = 200,
    **extra_fields: Any
) -> tuple:
    """
    Build a standardized success JSON response.

    Args:
        data: Optional payload to include as 'data' key.
        message: Optional success message.
        warning: Optional advisory message (the operation still succeeded).
        status: HTTP status code (default 200).
        **extra_fields: Additional top-level fields to include in the response.

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': True}

    if data is not None:
        response['data'] = data

    if message:
        response['message'] = message

    if warning:
        response['warning'] = warning

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_error(error: str, status: int = 400, **extra_fields: Any) -> tuple:
    """
    Build a standardized error JSON response.

    Args:
        error: Error message.
        status: HTTP status code (default 400).
        **extra_fields: Additional top-level fields (e.g., code).

    Returns:
        Tuple of (Response, status_code)
    """
    response = {'success': False, 'error': error}

    if extra_fields:
        response.update(extra_fields)

    return jsonify(response), status


def api_result(result: dict, success_status: int = 200, message: str | None = None) -> tuple:
    """
    Send a tagged engine result as a JSON response.

    Args:
        result: Dict returned by a booking engine operation.
        success_status: HTTP status for successful results.
        message: Optional success message.

    Returns:
        Tuple of (Response, status_code)
    """
    if result.get('success'):
        return api_success(
            data=result.get('data'),
            message=message,
            warning=result.get('warning'),
            status=success_status
        )

    code = result.get('code', ErrorKind.UNKNOWN)
    return api_error(result.get('error'), status=HTTP_STATUS.get(code, 500), code=code)


def get_json_object() -> dict:
    """
    Request body parsed as a JSON object.

    A missing or non-JSON body reads as {}. Any other JSON value (an array,
    a string, a number) aborts with 400, answered by the JSON error handler.

    Returns:
        dict of request fields
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description=MESSAGES['json_object_required'])
    return data
