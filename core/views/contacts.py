"""
Support inbox: public contact form and admin triage.
"""
import logging

from django.db.models import Count, Q
from django.http import JsonResponse
from django.utils import timezone

from ..forms import ContactForm, first_error
from ..models import Contact
from ..serializers import contact_data
from ._helpers import api_view, admin_required_json, int_param, read_json, error

logger = logging.getLogger(__name__)


@api_view(['POST'])
def submit(request):
    data, err = read_json(request)
    if err:
        return err

    form = ContactForm(data={
        'name': (data.get('name') or '').strip(),
        'email': (data.get('email') or '').strip().lower(),
        'phone': (data.get('phone') or '').strip(),
        'subject': (data.get('subject') or '').strip(),
        'message': (data.get('message') or '').strip(),
    })
    if not form.is_valid():
        return error(first_error(form), errors=form.errors.get_json_data())

    contact = form.save(commit=False)
    if request.user.is_authenticated:
        contact.user = request.user
    contact.save()

    logger.info(f"Contact message {contact.pk} received from {contact.email}")
    return JsonResponse({
        'success': True,
        'message': 'Thank you for reaching out. We will get back to you soon.',
        'contact': contact_data(contact),
    }, status=201)


@api_view(['GET'])
@admin_required_json
def admin_list(request):
    queryset = Contact.objects.all()
    status_filter = request.GET.get('status')
    if status_filter in Contact.Status.values:
        queryset = queryset.filter(status=status_filter)
    search = (request.GET.get('search') or '').strip()
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search)
            | Q(email__icontains=search)
            | Q(subject__icontains=search)
            | Q(message__icontains=search)
        )

    # This list pages with limit/offset rather than page numbers
    limit = int_param(request.GET.get('limit'), 50, maximum=100)
    offset = int_param(request.GET.get('offset'), 0, minimum=0)
    total = queryset.count()
    contacts = queryset[offset:offset + limit]

    return JsonResponse({
        'contacts': [contact_data(c) for c in contacts],
        'total': total,
        'limit': limit,
        'offset': offset,
        'hasMore': offset + limit < total,
    })


@api_view(['GET', 'DELETE'])
@admin_required_json
def admin_detail(request, contact_id):
    contact = Contact.objects.filter(pk=contact_id).first()
    if contact is None:
        return error('Contact not found', status=404)

    if request.method == 'DELETE':
        contact.delete()
        return JsonResponse({'success': True})

    # Opening a new message marks it read
    if contact.status == Contact.Status.NEW:
        contact.status = Contact.Status.READ
        contact.save(update_fields=['status', 'updated_at'])
    return JsonResponse({'contact': contact_data(contact)})


@api_view(['PUT'])
@admin_required_json
def admin_update_status(request, contact_id):
    contact = Contact.objects.filter(pk=contact_id).first()
    if contact is None:
        return error('Contact not found', status=404)

    data, err = read_json(request)
    if err:
        return err
    status = data.get('status')
    if status not in Contact.Status.values:
        return error('Invalid status')

    contact.status = status
    if status == Contact.Status.REPLIED and contact.replied_at is None:
        contact.replied_at = timezone.now()
    contact.save(update_fields=['status', 'replied_at', 'updated_at'])
    return JsonResponse({'success': True, 'contact': contact_data(contact)})


@api_view(['GET'])
@admin_required_json
def admin_stats(request):
    counts = dict(Contact.objects.values_list('status').annotate(n=Count('id')))
    return JsonResponse({
        'total': sum(counts.values()),
        **{status: counts.get(status, 0) for status in Contact.Status.values},
    })
