"""
KYC API: affiliate submission and admin review.
"""
import logging
import mimetypes

from django.db import transaction
from django.db.models import Q
from django.http import FileResponse, JsonResponse
from django.utils import timezone

from ..forms import KYCSubmissionForm, first_error
from ..models import Affiliate, KYCSubmission, KYC_DOCUMENT_FIELDS
from ..serializers import iso, kyc_data
from ._helpers import api_view, admin_required_json, login_required_json, paginate, parse_id, read_json, error

logger = logging.getLogger(__name__)

KYC_FIELD_MAP = {
    'documentType': 'document_type',
    'documentNumber': 'document_number',
    'dob': 'dob',
    'accountHolderName': 'account_holder_name',
    'bankAccountNumber': 'bank_account_number',
    'bankIFSC': 'bank_ifsc',
    'bankIfsc': 'bank_ifsc',
    'bankName': 'bank_name',
}
KYC_FILE_MAP = {
    'documentFront': 'document_front',
    'documentBack': 'document_back',
    'addressProof': 'address_proof',
}


def _map_keys(source, mapping):
    mapped = {}
    for key, field in mapping.items():
        if key in source:
            mapped[field] = source.get(key)
        elif field in source and field not in mapped:
            mapped[field] = source.get(field)
    return mapped


@api_view(['GET'])
@login_required_json
def status(request):
    kyc = KYCSubmission.objects.filter(affiliate__user=request.user).first()
    if kyc is None:
        return JsonResponse({
            'status': Affiliate.KYCStatus.NOT_SUBMITTED,
            'submittedAt': None,
            'reviewedAt': None,
            'rejectionReason': None,
        })
    return JsonResponse({
        'status': kyc.status,
        'submittedAt': iso(kyc.submitted_at),
        'reviewedAt': iso(kyc.reviewed_at),
        'rejectionReason': kyc.rejection_reason or None,
        'kyc': kyc_data(kyc),
    })


@api_view(['POST'])
@login_required_json
def submit(request):
    affiliate = Affiliate.ensure_for_user(request.user)
    existing = getattr(affiliate, 'kyc', None)
    if existing is not None and not existing.can_resubmit:
        return error(f'KYC already submitted (status: {existing.status})')

    form = KYCSubmissionForm(
        data=_map_keys(request.POST, KYC_FIELD_MAP),
        files=_map_keys(request.FILES, KYC_FILE_MAP),
        instance=existing,
    )
    if not form.is_valid():
        return error(first_error(form), errors=form.errors.get_json_data())

    with transaction.atomic():
        kyc = form.save(commit=False)
        kyc.affiliate = affiliate
        kyc.status = KYCSubmission.Status.PENDING
        kyc.submitted_at = timezone.now()
        # Resubmission starts a fresh review
        kyc.rejection_reason = ''
        kyc.reviewed_at = None
        kyc.reviewed_by = None
        kyc.save()

    logger.info(f"KYC submitted by affiliate {affiliate.pk} (resubmission={existing is not None})")
    return JsonResponse({'success': True, 'kyc': kyc_data(kyc)}, status=201)


@api_view(['GET'])
@admin_required_json
def admin_list(request):
    queryset = KYCSubmission.objects.select_related('affiliate__user', 'reviewed_by')
    status_filter = request.GET.get('status')
    if status_filter in KYCSubmission.Status.values:
        queryset = queryset.filter(status=status_filter)
    search = (request.GET.get('search') or '').strip()
    if search:
        queryset = queryset.filter(
            Q(affiliate__user__email__icontains=search)
            | Q(affiliate__user__name__icontains=search)
            | Q(account_holder_name__icontains=search)
            | Q(affiliate__referral_code__icontains=search)
        )

    items, meta = paginate(request, queryset)
    return JsonResponse({
        'submissions': [kyc_data(k, include_documents=True) for k in items],
        **meta,
    })


def _reviewable(kyc_id):
    kyc_id = parse_id(kyc_id)
    if kyc_id is None:
        return None, error('A valid kycId is required')
    kyc = KYCSubmission.objects.select_related('affiliate__user').filter(pk=kyc_id).first()
    if kyc is None:
        return None, error('KYC submission not found', status=404)
    if not kyc.is_reviewable:
        return None, error(f'KYC submission is already {kyc.status}')
    return kyc, None


@api_view(['POST'])
@admin_required_json
def admin_approve(request):
    data, err = read_json(request)
    if err:
        return err
    kyc, err = _reviewable(data.get('kycId'))
    if err:
        return err

    kyc.status = KYCSubmission.Status.APPROVED
    kyc.rejection_reason = ''
    kyc.reviewed_at = timezone.now()
    kyc.reviewed_by = request.user
    kyc.save()

    logger.info(f"KYC {kyc.pk} approved by {request.user.email}")
    return JsonResponse({'success': True, 'kyc': kyc_data(kyc)})


@api_view(['POST'])
@admin_required_json
def admin_reject(request):
    data, err = read_json(request)
    if err:
        return err
    reason = (data.get('rejectionReason') or '').strip()
    if not reason:
        return error('A rejection reason is required')
    kyc, err = _reviewable(data.get('kycId'))
    if err:
        return err

    kyc.status = KYCSubmission.Status.REJECTED
    kyc.rejection_reason = reason
    kyc.reviewed_at = timezone.now()
    kyc.reviewed_by = request.user
    kyc.save()

    logger.info(f"KYC {kyc.pk} rejected by {request.user.email}")
    return JsonResponse({'success': True, 'kyc': kyc_data(kyc)})


@api_view(['POST'])
@admin_required_json
def admin_under_review(request):
    data, err = read_json(request)
    if err:
        return err
    kyc_id = parse_id(data.get('kycId'))
    if kyc_id is None:
        return error('A valid kycId is required')
    kyc = KYCSubmission.objects.select_related('affiliate__user').filter(pk=kyc_id).first()
    if kyc is None:
        return error('KYC submission not found', status=404)
    if kyc.status != KYCSubmission.Status.PENDING:
        return error('Only pending submissions can be moved to review')

    kyc.status = KYCSubmission.Status.UNDER_REVIEW
    kyc.reviewed_by = request.user
    kyc.save()
    return JsonResponse({'success': True, 'kyc': kyc_data(kyc)})


@api_view(['GET'])
@admin_required_json
def admin_document(request, kyc_id, field):
    if field not in KYC_DOCUMENT_FIELDS:
        return error('Unknown document', status=404)
    kyc = KYCSubmission.objects.filter(pk=kyc_id).first()
    if kyc is None:
        return error('KYC submission not found', status=404)

    document = getattr(kyc, field)
    if not document:
        return error('Document not uploaded', status=404)

    try:
        handle = document.open('rb')
    except (FileNotFoundError, OSError) as e:
        logger.error(f"KYC document {kyc_id}/{field} unreadable: {e}")
        return error('Document not available', status=404)

    filename = document.name.rsplit('/', 1)[-1]
    content_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'
    return FileResponse(handle, content_type=content_type, filename=filename)
