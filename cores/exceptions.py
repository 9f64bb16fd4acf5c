# cores/exceptions.py
import logging
from contextlib import contextmanager

from django.db import InterfaceError, OperationalError

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class QuestionsLocked(APIException):
    """Raised for every question write while EXAM_EDIT_LOCK is on."""
    status_code = status.HTTP_423_LOCKED
    default_detail = "Question edits are locked currently. Disable EXAM_EDIT_LOCK to edit."
    default_code = 'locked'


class SourceUnavailable(APIException):
    """The attempt/question database could not be reached. Safe to retry."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Record store is unavailable. Please retry."
    default_code = 'source_unavailable'


def _first_message(data):
    if isinstance(data, dict):
        if 'detail' in data:
            return _first_message(data['detail'])
        for value in data.values():
            return _first_message(value)
        return ""
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ""
    return str(data)


def api_exception_handler(exc, context):
    """
    Render every API error as {"ok": false, "error": "..."} so the admin
    client can read one shape for all failures.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    message = _first_message(response.data)
    view = context.get('view')
    logger.warning(
        "%s failed with %s: %s",
        view.__class__.__name__ if view else "request",
        response.status_code,
        message,
    )
    response.data = {"ok": False, "error": message}
    return response


@contextmanager
def record_source():
    """Turn connection-level database failures into SourceUnavailable."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.error("Record store query failed: %s", exc)
        raise SourceUnavailable() from exc
