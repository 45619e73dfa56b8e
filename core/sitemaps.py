"""
Sitemap of the public marketing site. Locations point at the frontend
domain, not at this API host.
"""
from urllib.parse import urlsplit

from django.conf import settings
from django.contrib.sitemaps import Sitemap

from .models import Course

STATIC_PAGES = [
    ('', 1.0, 'daily'),
    ('/courses', 0.9, 'daily'),
    ('/about', 0.6, 'monthly'),
    ('/contact', 0.6, 'monthly'),
    ('/affiliate', 0.7, 'weekly'),
    ('/login', 0.3, 'yearly'),
    ('/signup', 0.4, 'yearly'),
    ('/privacy-policy', 0.3, 'yearly'),
    ('/terms', 0.3, 'yearly'),
    ('/refund-policy', 0.3, 'yearly'),
]


class FrontendSitemap(Sitemap):
    """Builds absolute URLs on FRONTEND_URL instead of the current Site."""

    def get_urls(self, page=1, site=None, protocol=None):
        parts = urlsplit(settings.FRONTEND_URL)
        return super().get_urls(page=page, protocol=parts.scheme or 'https', site=_FrontendSite(parts.netloc))


class _FrontendSite:
    def __init__(self, domain):
        self.domain = domain


class StaticPagesSitemap(FrontendSitemap):

    def items(self):
        return STATIC_PAGES

    def location(self, item):
        return item[0] or '/'

    def priority(self, item):
        return item[1]

    def changefreq(self, item):
        return item[2]


class CourseSitemap(FrontendSitemap):
    changefreq = 'weekly'
    priority = 0.8

    def items(self):
        return Course.objects.filter(is_published=True).order_by('pk')

    def location(self, course):
        return f"/courses/{course.pk}"

    def lastmod(self, course):
        return course.updated_at


sitemaps = {
    'static': StaticPagesSitemap,
    'courses': CourseSitemap,
}
