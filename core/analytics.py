"""
Date-bucketed reporting helpers shared by the affiliate and admin
analytics endpoints.
"""
from datetime import datetime, time, timedelta

from django.db.models import Count, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

PERIOD_DAYS = {
    '7d': 7,
    '30d': 30,
    '90d': 90,
    '365d': 365,
}
DEFAULT_PERIOD = '30d'


def period_window(period):
    """
    Returns (period, start_datetime, start_date, end_date) for a period key.
    Unknown keys fall back to 30 days.
    """
    if period not in PERIOD_DAYS:
        period = DEFAULT_PERIOD
    days = PERIOD_DAYS[period]
    end_date = timezone.localdate()
    start_date = end_date - timedelta(days=days - 1)
    start = timezone.make_aware(datetime.combine(start_date, time.min))
    return period, start, start_date, end_date


def daily_totals(queryset, date_field, sums=()):
    """
    Group a queryset by day. Returns {date: {'count': n, <sum_field>: total}}.
    """
    annotations = {'count': Count('id')}
    # Aliased: annotations may not shadow model fields
    for field in sums:
        annotations[f'total_{field}'] = Sum(field)
    rows = queryset.annotate(
        day=TruncDate(date_field)
    ).values('day').annotate(**annotations).order_by('day')

    buckets = {}
    for row in rows:
        bucket = {'count': row['count']}
        for field in sums:
            bucket[field] = row[f'total_{field}']
        buckets[row['day']] = bucket
    return buckets


def fill_days(start_date, end_date, series):
    """
    Zero-filled list of daily points.

    Args:
        series: dict of name -> (bucket dict from daily_totals, key in bucket)
    """
    points = []
    current = start_date
    while current <= end_date:
        point = {'date': current.isoformat()}
        for name, (buckets, key) in series.items():
            value = buckets.get(current, {}).get(key) or 0
            point[name] = float(value) if not isinstance(value, int) else value
        points.append(point)
        current += timedelta(days=1)
    return points


def safe_ratio(numerator, denominator, scale=1):
    if not denominator:
        return 0
    return round(float(numerator) / float(denominator) * scale, 2)
