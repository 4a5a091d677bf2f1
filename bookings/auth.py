from __future__ import annotations

import logging
from functools import wraps

from django.conf import settings
from django.http import JsonResponse
from django.utils.crypto import constant_time_compare


logger = logging.getLogger(__name__)


def is_admin_request(request) -> bool:
    """
    True when the request carries the configured admin token, either in the
    X-Admin-Token header or the `token` query parameter. No token configured
    means nobody is authorized.
    """
    expected = getattr(settings, "ADMIN_TOKEN", "")
    if not expected:
        return False
    supplied = request.headers.get("X-Admin-Token") or request.GET.get("token") or ""
    return constant_time_compare(supplied, expected)


def admin_token_required(view_func):
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not is_admin_request(request):
            logger.warning("Rejected admin request to %s", request.path)
            return JsonResponse(
                {"ok": False, "error": "Unauthorized", "code": "unauthorized", "category": "unauthorized"},
                status=401,
            )
        return view_func(request, *args, **kwargs)

    return _wrapped
