"""
Affiliate sales milestones (targets with a reward).
"""
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class Milestone(models.Model):
    """
    Reward for reaching `target_count` attributed sales, optionally
    counted only on the days from start_date to end_date.
    """
    target_count = models.PositiveIntegerField(
        _('target sales'),
        validators=[MinValueValidator(1)],
    )
    reward = models.CharField(_('reward'), max_length=255)
    description = models.TextField(_('description'), blank=True)
    is_active = models.BooleanField(_('active'), default=True)
    order = models.PositiveIntegerField(_('display order'), default=0)
    # Inclusive calendar days in TIME_ZONE
    start_date = models.DateField(_('start date'), null=True, blank=True)
    end_date = models.DateField(_('end date'), null=True, blank=True)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('milestone')
        verbose_name_plural = _('milestones')
        ordering = ['order', 'target_count']

    def __str__(self):
        return f"{self.target_count} sales: {self.reward}"

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({'end_date': _('End date must be after the start date.')})
