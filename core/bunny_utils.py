"""
Bunny.net Stream utilities: video upload and playback URLs.

API helpers follow the same contract as the payment helpers and return a
{'success': bool, ..., 'error': str} dict instead of raising.
"""
import hashlib
import logging
import time

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

BUNNY_API_BASE_URL = getattr(settings, 'BUNNY_API_BASE_URL', 'https://video.bunnycdn.com')
BUNNY_EMBED_BASE_URL = 'https://iframe.mediadelivery.net/embed'


def get_bunny_headers(content_type='application/json'):
    return {
        'AccessKey': settings.BUNNY_API_KEY,
        'Content-Type': content_type,
        'Accept': 'application/json',
    }


def is_configured():
    return bool(settings.BUNNY_API_KEY and settings.BUNNY_LIBRARY_ID)


def create_video(title):
    """
    Create an empty video object in the library.

    Returns:
        dict: {'success': bool, 'video_id': GUID, 'error': str}
    """
    endpoint = f"{BUNNY_API_BASE_URL}/library/{settings.BUNNY_LIBRARY_ID}/videos"

    try:
        logger.info(f"Bunny create video: title={title}")
        response = requests.post(
            endpoint,
            json={'title': title},
            headers=get_bunny_headers(),
            timeout=30
        )
        logger.info(f"Bunny create response status: {response.status_code}")

        if response.status_code in (200, 201):
            data = response.json()
            return {
                'success': True,
                'video_id': data.get('guid'),
            }
        logger.error(f"Bunny create video error: HTTP {response.status_code} {response.text[:200]}")
        return {
            'success': False,
            'error': f'Video CDN error (HTTP {response.status_code}).',
        }

    except requests.exceptions.Timeout:
        logger.error("Bunny API timeout on create")
        return {
            'success': False,
            'error': 'Video service timeout. Please try again.',
        }
    except requests.exceptions.RequestException as e:
        logger.error(f"Bunny API error on create: {e}")
        return {
            'success': False,
            'error': 'Video service unavailable. Please try again later.',
        }


def upload_video(video_id, file_obj):
    """
    Upload the video bytes for an existing video object.

    Returns:
        dict: {'success': bool, 'error': str}
    """
    endpoint = f"{BUNNY_API_BASE_URL}/library/{settings.BUNNY_LIBRARY_ID}/videos/{video_id}"

    try:
        logger.info(f"Bunny upload video: id={video_id}")
        response = requests.put(
            endpoint,
            data=file_obj,
            headers=get_bunny_headers('application/octet-stream'),
            timeout=600
        )
        logger.info(f"Bunny upload response status: {response.status_code}")

        if response.status_code in (200, 201):
            return {'success': True}
        logger.error(f"Bunny upload error: HTTP {response.status_code} {response.text[:200]}")
        return {
            'success': False,
            'error': f'Video upload failed (HTTP {response.status_code}).',
        }

    except requests.exceptions.Timeout:
        logger.error("Bunny API timeout on upload")
        return {
            'success': False,
            'error': 'Video upload timed out.',
        }
    except requests.exceptions.RequestException as e:
        logger.error(f"Bunny API error on upload: {e}")
        return {
            'success': False,
            'error': 'Video service unavailable. Please try again later.',
        }


def delete_video(video_id):
    """Remove a video from the library (used when an upload fails halfway)."""
    endpoint = f"{BUNNY_API_BASE_URL}/library/{settings.BUNNY_LIBRARY_ID}/videos/{video_id}"
    try:
        response = requests.delete(endpoint, headers=get_bunny_headers(), timeout=30)
        return {'success': response.status_code in (200, 204)}
    except requests.exceptions.RequestException as e:
        logger.error(f"Bunny API error on delete: {e}")
        return {'success': False, 'error': 'Video service unavailable.'}


def get_stream_url(video_id):
    """HLS playlist on the pull zone, or '' when no CDN hostname is set."""
    if not settings.BUNNY_CDN_HOSTNAME:
        return ''
    return f"https://{settings.BUNNY_CDN_HOSTNAME}/{video_id}/playlist.m3u8"


def sign_embed_token(video_id, expires):
    """Token authentication hash: sha256(token_key + video_id + expires)."""
    raw = f"{settings.BUNNY_TOKEN_KEY}{video_id}{expires}"
    return hashlib.sha256(raw.encode()).hexdigest()


def get_player_url(video_id, now=None):
    """
    Iframe embed URL for the video. Signed with an expiring token when a
    token key is configured.
    """
    url = f"{BUNNY_EMBED_BASE_URL}/{settings.BUNNY_LIBRARY_ID}/{video_id}"
    if not settings.BUNNY_TOKEN_KEY:
        return url
    expires = int(now if now is not None else time.time()) + settings.BUNNY_TOKEN_TTL
    token = sign_embed_token(video_id, expires)
    return f"{url}?token={token}&expires={expires}"
