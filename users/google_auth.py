"""
Google access-token verification for the JSON sign-in endpoint.
"""
import logging

import requests

logger = logging.getLogger(__name__)

GOOGLE_USERINFO_URL = 'https://www.googleapis.com/oauth2/v3/userinfo'


def fetch_google_profile(access_token):
    """
    Ask Google who the access token belongs to.

    Returns:
        dict: {
            'success': bool,
            'sub': Google account ID,
            'email': verified email,
            'name': display name,
            'picture': avatar URL,
            'error': error message (if failed)
        }
    """
    try:
        response = requests.get(
            GOOGLE_USERINFO_URL,
            headers={'Authorization': f'Bearer {access_token}'},
            timeout=10
        )
        logger.info(f"Google userinfo response status: {response.status_code}")

        if response.status_code != 200:
            return {
                'success': False,
                'error': 'Invalid Google access token.',
            }

        data = response.json()
        if data.get('email_verified') is False:
            return {
                'success': False,
                'error': 'Google email address is not verified.',
            }
        return {
            'success': True,
            'sub': data.get('sub'),
            'email': (data.get('email') or '').lower(),
            'name': data.get('name', ''),
            'picture': data.get('picture', ''),
        }

    except requests.exceptions.Timeout:
        logger.error("Google userinfo timeout")
        return {
            'success': False,
            'error': 'Google sign-in timed out. Please try again.',
        }
    except requests.exceptions.RequestException as e:
        logger.error(f"Google userinfo error: {e}")
        return {
            'success': False,
            'error': 'Google sign-in is unavailable. Please try again later.',
        }
