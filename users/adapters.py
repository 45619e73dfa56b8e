"""
django-allauth adapter for the browser Google OAuth flow under /accounts/.
"""
import logging

from allauth.socialaccount.adapter import DefaultSocialAccountAdapter

logger = logging.getLogger(__name__)


class SocialAccountAdapter(DefaultSocialAccountAdapter):

    def populate_user(self, request, sociallogin, data):
        user = super().populate_user(request, sociallogin, data)
        extra = sociallogin.account.extra_data or {}
        user.name = data.get('name') or extra.get('name') or user.name
        user.picture = extra.get('picture', '')[:500]
        if sociallogin.account.provider == 'google':
            user.provider = user.Provider.GOOGLE
            user.google_account_id = sociallogin.account.uid
        return user

    def save_user(self, request, sociallogin, form=None):
        from core.earnings import attribute_signup

        user = super().save_user(request, sociallogin, form)
        attribute_signup(request, user)
        logger.info(f"Social signup via {sociallogin.account.provider}: user {user.pk}")
        return user
