"""
KYC submission: identity document plus the bank account payouts go to.
"""
from django.db import models
from django.conf import settings
from django.core.validators import FileExtensionValidator, RegexValidator
from django.utils.translation import gettext_lazy as _
import os
import uuid

from core.storage import private_document_storage

KYC_DOCUMENT_EXTENSIONS = ['jpg', 'jpeg', 'png', 'pdf']
KYC_DOCUMENT_MAX_SIZE_MB = 5
KYC_DOCUMENT_FIELDS = ('document_front', 'document_back', 'address_proof')

ifsc_validator = RegexValidator(
    regex=r'^[A-Z]{4}0[A-Z0-9]{6}$',
    message=_('Enter a valid IFSC code (e.g. HDFC0001234).'),
)


def kyc_document_upload_path(instance, filename):
    """Random file names so document paths cannot be guessed."""
    ext = os.path.splitext(filename)[1].lower()
    return f"kyc/{instance.affiliate_id}/{uuid.uuid4().hex}{ext}"


class KYCSubmission(models.Model):
    """
    Identity verification for an affiliate. Payouts are only allowed once
    a submission is approved. The affiliate's kyc_status mirrors `status`.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        UNDER_REVIEW = 'under_review', _('Under review')
        APPROVED = 'approved', _('Approved')
        REJECTED = 'rejected', _('Rejected')

    class DocumentType(models.TextChoices):
        AADHAR = 'aadhar', _('Aadhaar card')
        PAN = 'pan', _('PAN card')

    affiliate = models.OneToOneField(
        'core.Affiliate',
        on_delete=models.CASCADE,
        related_name='kyc',
        verbose_name=_('affiliate'),
    )
    status = models.CharField(
        _('status'),
        max_length=15,
        choices=Status.choices,
        default=Status.PENDING,
    )
    document_type = models.CharField(
        _('document type'),
        max_length=10,
        choices=DocumentType.choices,
    )
    document_number = models.CharField(_('document number'), max_length=50)
    dob = models.DateField(_('date of birth'), null=True, blank=True)

    document_front = models.FileField(
        _('document front'),
        upload_to=kyc_document_upload_path,
        storage=private_document_storage,
        validators=[FileExtensionValidator(KYC_DOCUMENT_EXTENSIONS)],
    )
    document_back = models.FileField(
        _('document back'),
        upload_to=kyc_document_upload_path,
        storage=private_document_storage,
        blank=True,
        validators=[FileExtensionValidator(KYC_DOCUMENT_EXTENSIONS)],
    )
    address_proof = models.FileField(
        _('address proof'),
        upload_to=kyc_document_upload_path,
        storage=private_document_storage,
        blank=True,
        validators=[FileExtensionValidator(KYC_DOCUMENT_EXTENSIONS)],
    )

    # Bank account payouts are sent to
    account_holder_name = models.CharField(_('account holder name'), max_length=150)
    bank_account_number = models.CharField(_('bank account number'), max_length=30)
    bank_ifsc = models.CharField(
        _('IFSC code'),
        max_length=11,
        validators=[ifsc_validator],
    )
    bank_name = models.CharField(_('bank name'), max_length=150)

    rejection_reason = models.TextField(_('rejection reason'), blank=True)
    submitted_at = models.DateTimeField(_('submitted at'))
    reviewed_at = models.DateTimeField(_('reviewed at'), null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_kyc_submissions',
        verbose_name=_('reviewed by'),
    )

    class Meta:
        verbose_name = _('KYC submission')
        verbose_name_plural = _('KYC submissions')
        ordering = ['-submitted_at']
        indexes = [
            models.Index(fields=['status'], name='core_kycsub_status_idx'),
        ]

    def __str__(self):
        return f"KYC {self.affiliate.user.email} ({self.status})"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        # Keep the affiliate's denormalised status in step
        if self.affiliate.kyc_status != self.status:
            self.affiliate.kyc_status = self.status
            self.affiliate.save(update_fields=['kyc_status'])

    @property
    def can_resubmit(self):
        return self.status == self.Status.REJECTED

    @property
    def is_reviewable(self):
        return self.status in (self.Status.PENDING, self.Status.UNDER_REVIEW)

    @property
    def masked_account_number(self):
        number = self.bank_account_number or ''
        if len(number) <= 4:
            return number
        return '*' * (len(number) - 4) + number[-4:]
