"""
Tests for the course catalogue: admin course/video management, access
control, reviews, uploads and the public site metadata.
"""
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from core import bunny_utils
from core.models import Course, CourseReview, Purchase, Video

pytestmark = pytest.mark.django_db


def grant(user, course):
    return Purchase.objects.create(user=user, course=course, amount=course.price)


# =============================================================================
# Course management
# =============================================================================

def test_admin_creates_course(admin_client):
    response = admin_client.post('/api/courses', data={
        'title': 'Options Trading',
        'description': 'Calls and puts.',
        'price': 1499,
        'mrp': 2999,
        'isPublished': True,
    }, content_type='application/json')

    assert response.status_code == 201
    course = Course.objects.get(title='Options Trading')
    assert course.slug == 'options-trading'
    assert course.price == Decimal('1499')
    assert response.json()['course']['discountPercentage'] == 50


def test_mrp_defaults_to_price(admin_client):
    response = admin_client.post('/api/courses', data={
        'title': 'Budgeting 101',
        'price': '499',
    }, content_type='application/json')

    assert response.status_code == 201
    assert Course.objects.get(title='Budgeting 101').mrp == Decimal('499')


def test_price_above_mrp_is_rejected(admin_client):
    response = admin_client.post('/api/courses', data={
        'title': 'Overpriced',
        'price': 2000,
        'mrp': 1000,
    }, content_type='application/json')

    assert response.status_code == 400
    assert not Course.objects.exists()


def test_non_admin_cannot_create_course(buyer_client):
    response = buyer_client.post('/api/courses', data={'title': 'X', 'price': 1}, content_type='application/json')

    assert response.status_code == 403


def test_duplicate_titles_get_unique_slugs(course):
    other = Course.objects.create(title=course.title, mrp=100, price=100)

    assert other.slug == 'stock-market-basics-2'


def test_update_course_keeps_missing_fields(admin_client, course):
    response = admin_client.put(f'/api/courses/{course.pk}', data={
        'isPublished': False,
    }, content_type='application/json')

    assert response.status_code == 200
    course.refresh_from_db()
    assert course.is_published is False
    assert course.price == Decimal('999.00')
    assert course.title == 'Stock Market Basics'


def test_course_with_purchases_cannot_be_deleted(admin_client, course, buyer):
    grant(buyer, course)

    response = admin_client.delete(f'/api/courses/{course.pk}')

    assert response.status_code == 400
    assert Course.objects.filter(pk=course.pk).exists()


def test_delete_course(admin_client, course):
    assert admin_client.delete(f'/api/courses/{course.pk}').status_code == 200
    assert not Course.objects.exists()


# =============================================================================
# Catalogue & access
# =============================================================================

def test_public_list_hides_unpublished(client, course):
    Course.objects.create(title='Draft', mrp=10, price=10, is_published=False)

    response = client.get('/api/courses')

    titles = [c['title'] for c in response.json()['courses']]
    assert titles == ['Stock Market Basics']


def test_admin_list_includes_unpublished(admin_client, course):
    Course.objects.create(title='Draft', mrp=10, price=10, is_published=False)

    response = admin_client.get('/api/courses')

    assert len(response.json()['courses']) == 2


def test_unpublished_course_is_404_for_public(client):
    draft = Course.objects.create(title='Draft', mrp=10, price=10, is_published=False)

    assert client.get(f'/api/courses/{draft.pk}').status_code == 404


def test_stream_ids_only_for_owners(client, buyer, course):
    Video.objects.create(course=course, title='Intro', bunny_video_id='guid-1')

    response = client.get(f'/api/courses/{course.pk}')
    data = response.json()
    assert data['hasAccess'] is False
    assert 'bunnyVideoId' not in data['course']['videos'][0]

    grant(buyer, course)
    client.force_login(buyer)
    data = client.get(f'/api/courses/{course.pk}').json()
    assert data['hasAccess'] is True
    assert data['course']['videos'][0]['bunnyVideoId'] == 'guid-1'


def test_video_stream_requires_ownership(buyer_client, buyer, course):
    video = Video.objects.create(course=course, title='Intro', bunny_video_id='guid-1')

    assert buyer_client.get(f'/api/videos/{video.pk}/stream').status_code == 403

    grant(buyer, course)
    response = buyer_client.get(f'/api/videos/{video.pk}/stream')
    assert response.status_code == 200
    data = response.json()
    assert data['streamUrl'] == 'https://vz-test.b-cdn.net/guid-1/playlist.m3u8'
    assert data['playerUrl'] == 'https://iframe.mediadelivery.net/embed/12345/guid-1'


def test_signed_player_url(settings):
    settings.BUNNY_TOKEN_KEY = 'secret-key'
    settings.BUNNY_TOKEN_TTL = 3600

    url = bunny_utils.get_player_url('guid-1', now=1_700_000_000)

    expires = 1_700_003_600
    token = bunny_utils.sign_embed_token('guid-1', expires)
    assert url == f'https://iframe.mediadelivery.net/embed/12345/guid-1?token={token}&expires={expires}'


# =============================================================================
# Videos
# =============================================================================

def test_videos_are_appended_in_order(admin_client, course):
    for title in ('One', 'Two'):
        response = admin_client.post(f'/api/courses/{course.pk}/videos', data={
            'title': title,
            'bunnyVideoId': f'guid-{title}',
        }, content_type='application/json')
        assert response.status_code == 201

    assert list(course.videos.values_list('title', 'order')) == [('One', 0), ('Two', 1)]


def test_update_and_delete_video(admin_client, course):
    video = Video.objects.create(course=course, title='Intro', bunny_video_id='guid-1')
    url = f'/api/courses/{course.pk}/videos/{video.pk}'

    response = admin_client.put(url, data={'title': 'Welcome'}, content_type='application/json')
    assert response.status_code == 200
    video.refresh_from_db()
    assert video.title == 'Welcome'
    assert video.bunny_video_id == 'guid-1'

    assert admin_client.delete(url).status_code == 200
    assert not Video.objects.exists()


# =============================================================================
# Reviews
# =============================================================================

def test_only_owners_can_review(buyer_client, course):
    response = buyer_client.post(f'/api/courses/{course.pk}/reviews', data={
        'rating': 5,
    }, content_type='application/json')

    assert response.status_code == 403


def test_refunded_buyer_cannot_review(buyer_client, buyer, course):
    purchase = grant(buyer, course)
    purchase.status = Purchase.Status.REFUNDED
    purchase.save()

    response = buyer_client.post(f'/api/courses/{course.pk}/reviews', data={
        'rating': 4,
    }, content_type='application/json')

    assert response.status_code == 403
    assert not course.is_owned_by(buyer)
    assert not CourseReview.objects.exists()


def test_review_is_created_then_updated(buyer_client, buyer, course):
    grant(buyer, course)
    url = f'/api/courses/{course.pk}/reviews'

    response = buyer_client.post(url, data={'rating': 4, 'comment': 'Good'}, content_type='application/json')
    assert response.status_code == 201

    response = buyer_client.post(url, data={'rating': 5, 'comment': 'Great'}, content_type='application/json')
    assert response.status_code == 200
    assert CourseReview.objects.count() == 1
    assert response.json()['reviewSummary'] == {'averageRating': 5.0, 'reviewCount': 1}


@pytest.mark.parametrize('rating', [0, 6, 'five', None])
def test_review_rating_bounds(buyer_client, buyer, course, rating):
    grant(buyer, course)

    response = buyer_client.post(f'/api/courses/{course.pk}/reviews', data={
        'rating': rating,
    }, content_type='application/json')

    assert response.status_code == 400


# =============================================================================
# Uploads
# =============================================================================

def test_thumbnail_upload_to_local_storage(admin_client):
    image = SimpleUploadedFile('cover.png', b'\x89PNG\r\n\x1a\nfake', content_type='image/png')

    response = admin_client.post('/api/upload/thumbnail', {'thumbnail': image})

    assert response.status_code == 201
    assert '/media/thumbnails/' in response.json()['url']


def test_thumbnail_upload_rejects_other_types(admin_client):
    doc = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')

    response = admin_client.post('/api/upload/thumbnail', {'thumbnail': doc})

    assert response.status_code == 400


def test_bunny_upload_requires_configuration(admin_client):
    video = SimpleUploadedFile('lesson.mp4', b'0000', content_type='video/mp4')

    response = admin_client.post('/api/upload/bunny', {'video': video})

    assert response.status_code == 503


def test_bunny_upload(admin_client, settings):
    settings.BUNNY_API_KEY = 'bunny-key'
    video = SimpleUploadedFile('lesson.mp4', b'0000', content_type='video/mp4')

    with patch('core.bunny_utils.requests.post') as mock_post, \
            patch('core.bunny_utils.requests.put') as mock_put:
        mock_post.return_value.status_code = 200
        mock_post.return_value.json.return_value = {'guid': 'new-guid'}
        mock_put.return_value.status_code = 200

        response = admin_client.post('/api/upload/bunny', {'video': video, 'title': 'Lesson 1'})

    assert response.status_code == 201
    assert response.json() == {'bunnyVideoId': 'new-guid', 'title': 'Lesson 1'}
    assert mock_post.call_args.kwargs['headers']['AccessKey'] == 'bunny-key'


def test_bunny_upload_failure_cleans_up(admin_client, settings):
    settings.BUNNY_API_KEY = 'bunny-key'
    video = SimpleUploadedFile('lesson.mp4', b'0000', content_type='video/mp4')

    with patch('core.bunny_utils.requests.post') as mock_post, \
            patch('core.bunny_utils.requests.put') as mock_put, \
            patch('core.bunny_utils.requests.delete') as mock_delete:
        mock_post.return_value.status_code = 200
        mock_post.return_value.json.return_value = {'guid': 'new-guid'}
        mock_put.return_value.status_code = 500
        mock_put.return_value.text = 'boom'
        mock_delete.return_value.status_code = 200

        response = admin_client.post('/api/upload/bunny', {'video': video})

    assert response.status_code == 502
    mock_delete.assert_called_once()


# =============================================================================
# Site metadata
# =============================================================================

def test_sitemap_lists_published_courses(client, course, settings):
    settings.FRONTEND_URL = 'https://www.learnwealthx.in'

    response = client.get('/sitemap.xml')

    assert response.status_code == 200
    content = response.content.decode()
    assert f'https://www.learnwealthx.in/courses/{course.pk}' in content


def test_robots_txt(client):
    response = client.get('/robots.txt')

    assert response.status_code == 200
    assert 'Disallow: /api/' in response.content.decode()
    assert 'Sitemap: http://testserver/sitemap.xml' in response.content.decode()


def test_health(client):
    assert client.get('/api/health').json() == {'status': 'ok'}
