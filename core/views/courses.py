"""
Course catalogue API: courses, videos, reviews and video playback.
"""
import logging

from django.db.models import Avg, Count, Max
from django.forms.models import model_to_dict
from django.http import JsonResponse

from .. import bunny_utils
from ..forms import CourseForm, VideoForm, first_error
from ..models import Course, Video, CourseReview, Purchase
from ..serializers import course_data, video_data, review_data
from ._helpers import api_view, admin_required_json, login_required_json, read_json, error

logger = logging.getLogger(__name__)

COURSE_FIELD_MAP = {
    'title': 'title',
    'description': 'description',
    'price': 'price',
    'mrp': 'mrp',
    'thumbnail': 'thumbnail',
    'isPublished': 'is_published',
}

VIDEO_FIELD_MAP = {
    'title': 'title',
    'description': 'description',
    'bunnyVideoId': 'bunny_video_id',
    'order': 'order',
    'duration': 'duration',
}


def bind_payload(data, field_map, instance=None, fields=None):
    """
    Build form data from a camelCase payload. On update, fields missing
    from the payload keep the instance's current values.
    """
    bound = {}
    if instance is not None:
        bound = {k: v for k, v in model_to_dict(instance, fields=fields).items() if v is not None}
    for key, field in field_map.items():
        if key in data:
            bound[field] = data[key]
        elif field in data:
            bound[field] = data[field]
    return bound


def get_course_for(request, course_id):
    """Course visible to the caller, or None (unpublished is admin-only)."""
    course = Course.objects.filter(pk=course_id).first()
    if course is None:
        return None
    if not course.is_published and not (request.user.is_authenticated and request.user.is_admin):
        return None
    return course


def review_summary(course):
    summary = course.reviews.aggregate(average=Avg('rating'), count=Count('id'))
    return {
        'averageRating': round(summary['average'] or 0, 1),
        'reviewCount': summary['count'],
    }


@api_view(['GET', 'POST'])
def course_collection(request):
    if request.method == 'POST':
        return create_course(request)

    courses = Course.objects.prefetch_related('videos')
    if not (request.user.is_authenticated and request.user.is_admin):
        courses = courses.filter(is_published=True)
    return JsonResponse({'courses': [course_data(c) for c in courses]})


@admin_required_json
def create_course(request):
    data, err = read_json(request)
    if err:
        return err

    form = CourseForm(data=bind_payload(data, COURSE_FIELD_MAP))
    if not form.is_valid():
        return error(first_error(form), errors=form.errors.get_json_data())
    course = form.save()
    logger.info(f"Course {course.pk} created by {request.user.email}")
    return JsonResponse({'course': course_data(course)}, status=201)


@api_view(['GET', 'PUT', 'DELETE'])
def course_detail(request, course_id):
    if request.method == 'PUT':
        return update_course(request, course_id)
    if request.method == 'DELETE':
        return delete_course(request, course_id)

    course = get_course_for(request, course_id)
    if course is None:
        return error('Course not found', status=404)

    has_access = course.is_owned_by(request.user)
    return JsonResponse({
        'course': course_data(course, include_stream_ids=has_access),
        'hasAccess': has_access,
        'reviewSummary': review_summary(course),
    })


@admin_required_json
def update_course(request, course_id):
    course = Course.objects.filter(pk=course_id).first()
    if course is None:
        return error('Course not found', status=404)

    data, err = read_json(request)
    if err:
        return err

    form = CourseForm(
        data=bind_payload(data, COURSE_FIELD_MAP, course, fields=list(COURSE_FIELD_MAP.values())),
        instance=course,
    )
    if not form.is_valid():
        return error(first_error(form), errors=form.errors.get_json_data())
    course = form.save()
    return JsonResponse({'course': course_data(course, include_stream_ids=True)})


@admin_required_json
def delete_course(request, course_id):
    course = Course.objects.filter(pk=course_id).first()
    if course is None:
        return error('Course not found', status=404)
    if course.purchases.exists():
        return error('Course has purchases; unpublish it instead of deleting', status=400)

    logger.info(f"Course {course.pk} deleted by {request.user.email}")
    course.delete()
    return JsonResponse({'success': True})


@api_view(['POST'])
@admin_required_json
def create_video(request, course_id):
    course = Course.objects.filter(pk=course_id).first()
    if course is None:
        return error('Course not found', status=404)

    data, err = read_json(request)
    if err:
        return err

    payload = bind_payload(data, VIDEO_FIELD_MAP)
    if payload.get('order') in (None, ''):
        current_max = course.videos.aggregate(m=Max('order'))['m']
        payload['order'] = 0 if current_max is None else current_max + 1

    form = VideoForm(data=payload)
    if not form.is_valid():
        return error(first_error(form), errors=form.errors.get_json_data())
    video = form.save(commit=False)
    video.course = course
    video.save()
    return JsonResponse({'video': video_data(video, include_stream_id=True)}, status=201)


@api_view(['PUT', 'DELETE'])
@admin_required_json
def video_detail(request, course_id, video_id):
    video = Video.objects.filter(pk=video_id, course_id=course_id).first()
    if video is None:
        return error('Video not found', status=404)

    if request.method == 'DELETE':
        video.delete()
        return JsonResponse({'success': True})

    data, err = read_json(request)
    if err:
        return err

    form = VideoForm(
        data=bind_payload(data, VIDEO_FIELD_MAP, video, fields=list(VIDEO_FIELD_MAP.values())),
        instance=video,
    )
    if not form.is_valid():
        return error(first_error(form), errors=form.errors.get_json_data())
    video = form.save()
    return JsonResponse({'video': video_data(video, include_stream_id=True)})


@api_view(['GET', 'POST'])
def course_reviews(request, course_id):
    course = get_course_for(request, course_id)
    if course is None:
        return error('Course not found', status=404)

    if request.method == 'GET':
        reviews = course.reviews.select_related('user')
        return JsonResponse({
            'reviews': [review_data(r) for r in reviews],
            'reviewSummary': review_summary(course),
        })

    if not request.user.is_authenticated:
        return error('Authentication required', status=401)
    if not course.purchases.filter(user=request.user, status=Purchase.Status.COMPLETED).exists():
        return error('You must own this course to review it.', status=403)

    data, err = read_json(request)
    if err:
        return err

    try:
        rating = int(data.get('rating'))
        if rating < 1 or rating > 5:
            raise ValueError
    except (TypeError, ValueError):
        return error('Please select a rating between 1 and 5 stars.')

    # Truncate comment if too long
    comment = (data.get('comment') or '').strip()[:1000]

    review, created = CourseReview.objects.update_or_create(
        user=request.user,
        course=course,
        defaults={'rating': rating, 'comment': comment},
    )
    return JsonResponse({
        'review': review_data(review),
        'reviewSummary': review_summary(course),
    }, status=201 if created else 200)


@api_view(['GET'])
@login_required_json
def video_stream(request, video_id):
    video = Video.objects.select_related('course').filter(pk=video_id).first()
    if video is None:
        return error('Video not found', status=404)
    if not video.course.is_owned_by(request.user):
        return error('You do not have access to this course', status=403)

    return JsonResponse({
        'video': video_data(video, include_stream_id=True),
        'streamUrl': bunny_utils.get_stream_url(video.bunny_video_id),
        'playerUrl': bunny_utils.get_player_url(video.bunny_video_id),
    })
