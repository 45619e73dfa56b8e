"""
Course catalogue models: Course, Video, CourseReview.
"""
from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.utils.text import slugify
from django.utils.translation import gettext_lazy as _
from decimal import Decimal


class Course(models.Model):
    """
    A paid video course. Buyers get lifetime access to every video in it.
    """
    title = models.CharField(_('title'), max_length=200)
    slug = models.SlugField(
        _('slug'),
        max_length=220,
        unique=True,
        blank=True,
    )
    description = models.TextField(_('description'), blank=True)
    mrp = models.DecimalField(
        _('MRP'),
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text=_('List price shown struck through (INR).'),
    )
    price = models.DecimalField(
        _('price'),
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text=_('Selling price before GST and gateway fee (INR).'),
    )
    thumbnail = models.CharField(
        _('thumbnail'),
        max_length=500,
        blank=True,
        help_text=_('Thumbnail URL returned by the upload endpoint.'),
    )
    is_published = models.BooleanField(_('published'), default=False)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('course')
        verbose_name_plural = _('courses')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['is_published'], name='core_course_is_publ_idx'),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = self._unique_slug()
        super().save(*args, **kwargs)

    def _unique_slug(self):
        base = slugify(self.title)[:200] or 'course'
        slug = base
        counter = 2
        while Course.objects.filter(slug=slug).exclude(pk=self.pk).exists():
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    @property
    def discount_percentage(self):
        """Whole-number discount of price against MRP."""
        if not self.mrp or self.mrp <= self.price:
            return 0
        return int(((self.mrp - self.price) / self.mrp * 100).quantize(Decimal('1')))

    @property
    def average_rating(self):
        result = self.reviews.aggregate(avg=models.Avg('rating'))
        return round(result['avg'] or 0, 1)

    def is_owned_by(self, user):
        """Admins see everything; everyone else needs a completed purchase."""
        if not user or not user.is_authenticated:
            return False
        if user.is_admin:
            return True
        from .purchase import Purchase

        return self.purchases.filter(
            user=user,
            status=Purchase.Status.COMPLETED,
        ).exists()


class Video(models.Model):
    """A lesson hosted on the Bunny.net Stream library."""
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='videos',
        verbose_name=_('course'),
    )
    title = models.CharField(_('title'), max_length=200)
    description = models.TextField(_('description'), blank=True)
    bunny_video_id = models.CharField(
        _('Bunny video ID'),
        max_length=100,
        help_text=_('GUID of the video in the Bunny Stream library.'),
    )
    order = models.PositiveIntegerField(_('order'), default=0)
    duration = models.PositiveIntegerField(
        _('duration'),
        null=True,
        blank=True,
        help_text=_('Length in seconds.'),
    )
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('video')
        verbose_name_plural = _('videos')
        ordering = ['order', 'id']

    def __str__(self):
        return f"{self.course.title} - {self.title}"


class CourseReview(models.Model):
    """
    One rating per user per course. Only owners may review.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='course_reviews',
        verbose_name=_('user'),
    )
    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name='reviews',
        verbose_name=_('course'),
    )
    rating = models.PositiveSmallIntegerField(
        _('rating'),
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    comment = models.TextField(_('comment'), max_length=1000, blank=True)
    created_at = models.DateTimeField(_('created at'), auto_now_add=True)
    updated_at = models.DateTimeField(_('updated at'), auto_now=True)

    class Meta:
        verbose_name = _('course review')
        verbose_name_plural = _('course reviews')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'course'],
                name='unique_user_course_review'
            )
        ]

    def __str__(self):
        return f"{self.user.email} - {self.course.title} ({self.rating})"
