"""
Shared plumbing for the JSON API views: method/auth guards, body parsing
and pagination.
"""
from functools import wraps
import json
import math

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt


def error(message, status=400, **extra):
    payload = {'error': message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def api_view(methods):
    """
    Mark a function as a JSON endpoint accepting `methods`.
    Other methods get a JSON 405 instead of Django's HTML page.
    """
    def decorator(view_func):
        @csrf_exempt
        @wraps(view_func)
        def wrapped(request, *args, **kwargs):
            if request.method not in methods:
                return error(f'Method {request.method} not allowed', status=405)
            return view_func(request, *args, **kwargs)
        return wrapped
    return decorator


def login_required_json(view_func):
    @wraps(view_func)
    def wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return error('Authentication required', status=401)
        return view_func(request, *args, **kwargs)
    return wrapped


def admin_required_json(view_func):
    @wraps(view_func)
    def wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return error('Authentication required', status=401)
        if not request.user.is_admin:
            return error('Admin access required', status=403)
        return view_func(request, *args, **kwargs)
    return wrapped


def read_json(request):
    """
    Returns (data, None) or (None, error_response) for a JSON object body.
    An empty body is treated as {}.
    """
    if not request.body:
        return {}, None
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, ValueError):
        return None, error('Invalid JSON')
    if not isinstance(data, dict):
        return None, error('Expected a JSON object')
    return data, None


def int_param(value, default, minimum=1, maximum=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    number = max(number, minimum)
    if maximum is not None:
        number = min(number, maximum)
    return number


def parse_id(value):
    """Primary key from a JSON body value, or None when it is not a positive integer."""
    if isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def paginate(request, queryset, default_limit=50, max_limit=100):
    """
    Page/limit pagination.
    Returns (items, meta) where meta has total, page, limit, totalPages.
    """
    page = int_param(request.GET.get('page'), 1)
    limit = int_param(request.GET.get('limit'), default_limit, maximum=max_limit)
    total = queryset.count()
    offset = (page - 1) * limit
    items = list(queryset[offset:offset + limit])
    return items, {
        'total': total,
        'page': page,
        'limit': limit,
        'totalPages': math.ceil(total / limit) if total else 0,
    }


def client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')
