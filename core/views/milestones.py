"""
Affiliate milestones: admin CRUD and affiliate progress.
"""
from django.db.models import Q
from django.http import JsonResponse
from django.utils import timezone

from ..forms import MilestoneForm, first_error
from ..models import Milestone, Purchase
from ..serializers import milestone_data
from ._helpers import api_view, admin_required_json, login_required_json, read_json, error

MILESTONE_FIELD_MAP = {
    'targetCount': 'target_count',
    'reward': 'reward',
    'description': 'description',
    'isActive': 'is_active',
    'order': 'order',
    'startDate': 'start_date',
    'endDate': 'end_date',
}


def _bind(data, instance=None):
    if instance is not None:
        bound = {
            'target_count': instance.target_count,
            'reward': instance.reward,
            'description': instance.description,
            'is_active': instance.is_active,
            'order': instance.order,
            'start_date': instance.start_date,
            'end_date': instance.end_date,
        }
    else:
        bound = {'is_active': True, 'order': 0}
    for key, field in MILESTONE_FIELD_MAP.items():
        if key in data:
            bound[field] = data[key]
    for field in ('start_date', 'end_date'):
        value = bound.get(field)
        # Date pickers may send a full ISO timestamp; only the day counts
        if isinstance(value, str) and 'T' in value:
            bound[field] = value.split('T', 1)[0]
    return bound


@api_view(['GET', 'POST'])
@admin_required_json
def admin_collection(request):
    if request.method == 'GET':
        return JsonResponse({'milestones': [milestone_data(m) for m in Milestone.objects.all()]})

    data, err = read_json(request)
    if err:
        return err
    form = MilestoneForm(data=_bind(data))
    if not form.is_valid():
        return error(first_error(form), errors=form.errors.get_json_data())
    milestone = form.save()
    return JsonResponse({'milestone': milestone_data(milestone)}, status=201)


@api_view(['PUT', 'DELETE'])
@admin_required_json
def admin_detail(request, milestone_id):
    milestone = Milestone.objects.filter(pk=milestone_id).first()
    if milestone is None:
        return error('Milestone not found', status=404)

    if request.method == 'DELETE':
        milestone.delete()
        return JsonResponse({'success': True})

    data, err = read_json(request)
    if err:
        return err
    form = MilestoneForm(data=_bind(data, milestone), instance=milestone)
    if not form.is_valid():
        return error(first_error(form), errors=form.errors.get_json_data())
    milestone = form.save()
    return JsonResponse({'milestone': milestone_data(milestone)})


@api_view(['GET'])
@login_required_json
def progress(request):
    """Active milestones with the caller's attributed sales in each window."""
    today = timezone.localdate()
    milestones = Milestone.objects.filter(is_active=True).filter(
        Q(end_date__isnull=True) | Q(end_date__gte=today)
    )
    sales = Purchase.objects.filter(affiliate__user=request.user, status=Purchase.Status.COMPLETED)

    results = []
    for milestone in milestones:
        window = sales
        if milestone.start_date:
            window = window.filter(created_at__date__gte=milestone.start_date)
        if milestone.end_date:
            window = window.filter(created_at__date__lte=milestone.end_date)
        count = window.count()
        data = milestone_data(milestone)
        data.update({
            'currentCount': count,
            'achieved': count >= milestone.target_count,
            'progress': min(100, round(count / milestone.target_count * 100, 1)),
        })
        results.append(data)

    return JsonResponse({'milestones': results})
