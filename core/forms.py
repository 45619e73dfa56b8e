"""
Validation forms for JSON and multipart API payloads.
Views translate camelCase request keys to field names before binding.
"""
import re

from django import forms
from django.core.exceptions import ValidationError
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .models import Course, Video, KYCSubmission, Contact, Milestone
from .models.kyc import KYC_DOCUMENT_EXTENSIONS, KYC_DOCUMENT_MAX_SIZE_MB


ALLOWED_IMAGE_EXTENSIONS = ['jpg', 'jpeg', 'png', 'webp']
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB
MAX_DOCUMENT_SIZE = KYC_DOCUMENT_MAX_SIZE_MB * 1024 * 1024


def validate_file_size(file, max_size, file_type="file"):
    """Validate file size doesn't exceed maximum."""
    if file.size > max_size:
        max_mb = max_size / (1024 * 1024)
        raise ValidationError(
            _('The %(file_type)s is too large. Maximum size is %(max_mb)dMB.'),
            params={'file_type': file_type, 'max_mb': max_mb},
        )


def validate_extension(file, allowed, file_type="file"):
    ext = file.name.rsplit('.', 1)[-1].lower() if '.' in file.name else ''
    if ext not in allowed:
        raise ValidationError(
            _('Unsupported %(file_type)s type. Allowed: %(allowed)s.'),
            params={'file_type': file_type, 'allowed': ', '.join(allowed)},
        )


def first_error(form):
    """Flatten a form's errors into a single message for {'error': ...}."""
    for field, errors in form.errors.items():
        if field == '__all__':
            return errors[0]
        return f"{field}: {errors[0]}"
    return 'Invalid data'


class CourseForm(forms.ModelForm):
    """Course create/update. MRP defaults to the price."""

    mrp = forms.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)

    class Meta:
        model = Course
        fields = ['title', 'description', 'price', 'mrp', 'thumbnail', 'is_published']

    def clean_title(self):
        title = self.cleaned_data['title'].strip()
        if not title:
            raise ValidationError(_('Title is required.'))
        return title

    def clean(self):
        cleaned_data = super().clean()
        price = cleaned_data.get('price')
        mrp = cleaned_data.get('mrp')
        if price is None:
            return cleaned_data
        if mrp is None:
            cleaned_data['mrp'] = price
        elif price > mrp:
            raise ValidationError(_('Price cannot be greater than MRP.'))
        return cleaned_data


class VideoForm(forms.ModelForm):

    class Meta:
        model = Video
        fields = ['title', 'description', 'bunny_video_id', 'order', 'duration']


class ThumbnailUploadForm(forms.Form):
    thumbnail = forms.FileField()

    def clean_thumbnail(self):
        file = self.cleaned_data['thumbnail']
        validate_extension(file, ALLOWED_IMAGE_EXTENSIONS, 'image')
        validate_file_size(file, MAX_IMAGE_SIZE, 'image')
        return file


class KYCSubmissionForm(forms.ModelForm):
    """
    KYC documents and bank details. Document front is required; back and
    address proof are optional.
    """

    class Meta:
        model = KYCSubmission
        fields = [
            'document_type',
            'document_number',
            'dob',
            'document_front',
            'document_back',
            'address_proof',
            'account_holder_name',
            'bank_account_number',
            'bank_ifsc',
            'bank_name',
        ]

    def _clean_document(self, field):
        file = self.cleaned_data.get(field)
        if file and hasattr(file, 'size'):
            validate_extension(file, KYC_DOCUMENT_EXTENSIONS, 'document')
            validate_file_size(file, MAX_DOCUMENT_SIZE, 'document')
        return file

    def clean_document_front(self):
        return self._clean_document('document_front')

    def clean_document_back(self):
        return self._clean_document('document_back')

    def clean_address_proof(self):
        return self._clean_document('address_proof')

    def clean_document_number(self):
        return self.cleaned_data['document_number'].strip().upper()

    def clean_bank_ifsc(self):
        return self.cleaned_data['bank_ifsc'].strip().upper()

    def clean_bank_account_number(self):
        number = self.cleaned_data['bank_account_number'].replace(' ', '')
        if not number.isdigit() or not 9 <= len(number) <= 18:
            raise ValidationError(_('Enter a valid bank account number.'))
        return number

    def clean_dob(self):
        dob = self.cleaned_data.get('dob')
        if dob and dob >= timezone.localdate():
            raise ValidationError(_('Enter a valid date of birth.'))
        return dob

    def clean(self):
        cleaned_data = super().clean()
        document_type = cleaned_data.get('document_type')
        number = cleaned_data.get('document_number', '')
        if document_type == KYCSubmission.DocumentType.PAN and number:
            if not re.match(r'^[A-Z]{5}[0-9]{4}[A-Z]$', number):
                self.add_error('document_number', _('Enter a valid PAN number.'))
        elif document_type == KYCSubmission.DocumentType.AADHAR and number:
            if not (number.isdigit() and len(number) == 12):
                self.add_error('document_number', _('Aadhaar number must be 12 digits.'))
        return cleaned_data


class ContactForm(forms.ModelForm):

    class Meta:
        model = Contact
        fields = ['name', 'email', 'phone', 'subject', 'message']


class MilestoneForm(forms.ModelForm):

    class Meta:
        model = Milestone
        fields = [
            'target_count',
            'reward',
            'description',
            'is_active',
            'order',
            'start_date',
            'end_date',
        ]

    def clean_reward(self):
        reward = self.cleaned_data['reward'].strip()
        if not reward:
            raise ValidationError(_('Reward is required.'))
        return reward
