"""
Contact form messages (support inbox).
"""
from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _


class Contact(models.Model):

    class Status(models.TextChoices):
        NEW = 'new', _('New')
        READ = 'read', _('Read')
        REPLIED = 'replied', _('Replied')
        ARCHIVED = 'archived', _('Archived')

    name = models.CharField(_('name'), max_length=150)
    email = models.EmailField(_('email'))
    phone = models.CharField(_('phone'), max_length=20, blank=True)
    subject = models.CharField(_('subject'), max_length=200)
    message = models.TextField(_('message'), max_length=5000)
    status = models.CharField(
        _('status'),
        max_length=10,
        choices=Status.choices,
        default=Status.NEW,
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='contacts',
        verbose_name=_('user'),
    )
    replied_at = models.DateTimeField(_('replied at'), null=True, blank=True)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('contact message')
        verbose_name_plural = _('contact messages')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='core_contact_status_idx'),
        ]

    def __str__(self):
        return f"{self.name} <{self.email}>: {self.subject}"
