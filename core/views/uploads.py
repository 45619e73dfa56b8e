"""
Admin media uploads: course thumbnails and Bunny Stream videos.
"""
import logging
import os
import uuid

from django.http import JsonResponse

from .. import bunny_utils
from ..forms import ThumbnailUploadForm, first_error
from ..storage import image_storage
from ._helpers import api_view, admin_required_json, error

logger = logging.getLogger(__name__)


@api_view(['POST'])
@admin_required_json
def upload_thumbnail(request):
    form = ThumbnailUploadForm(files=request.FILES)
    if not form.is_valid():
        return error(first_error(form))

    file = form.cleaned_data['thumbnail']
    ext = os.path.splitext(file.name)[1].lower()
    storage = image_storage()
    name = storage.save(f"thumbnails/{uuid.uuid4().hex}{ext}", file)
    url = storage.url(name)
    if url.startswith('/'):
        url = request.build_absolute_uri(url)

    logger.info(f"Thumbnail uploaded: {name}")
    return JsonResponse({'url': url}, status=201)


@api_view(['POST'])
@admin_required_json
def upload_bunny_video(request):
    video_file = request.FILES.get('video')
    if video_file is None:
        return error('No video file provided')
    if not bunny_utils.is_configured():
        return error('Video CDN is not configured', status=503)

    title = (request.POST.get('title') or os.path.splitext(video_file.name)[0])[:200]

    created = bunny_utils.create_video(title)
    if not created['success']:
        return error(created['error'], status=502)

    video_id = created['video_id']
    uploaded = bunny_utils.upload_video(video_id, video_file)
    if not uploaded['success']:
        bunny_utils.delete_video(video_id)
        return error(uploaded['error'], status=502)

    logger.info(f"Bunny video {video_id} uploaded by {request.user.email}")
    return JsonResponse({'bunnyVideoId': video_id, 'title': title}, status=201)
