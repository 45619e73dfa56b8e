"""
Public metadata endpoints: robots.txt and health check.
The sitemap itself is served by django.contrib.sitemaps (see core/sitemaps.py).
"""
from django.db import connection
from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET

ROBOTS_DISALLOW = [
    '/admin/',
    '/api/',
    '/profile',
    '/affiliate/',
    '/reset-password',
    '/forgot-password',
]


@require_GET
def robots_txt(request):
    lines = ['User-agent: *', 'Allow: /']
    lines += [f'Disallow: {path}' for path in ROBOTS_DISALLOW]
    lines += ['', f"Sitemap: {request.build_absolute_uri('/sitemap.xml')}"]
    return HttpResponse('\n'.join(lines) + '\n', content_type='text/plain')


@require_GET
def health(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except Exception as e:
        return JsonResponse({'status': 'error', 'error': str(e)}, status=503)
    return JsonResponse({'status': 'ok'})
