"""
Tests for the Google OAuth connector.
"""

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from connectors.google import GoogleConnector


class TestGoogleConnector:
    def test_auth_url(self, google):
        url = urlsplit(google.get_auth_url())
        params = parse_qs(url.query)

        assert f"{url.scheme}://{url.netloc}{url.path}" == "https://accounts.google.com/o/oauth2/v2/auth"
        assert params == {
            "client_id": ["client-123"],
            "redirect_uri": ["http://frontend.test/api/users/google-redirect"],
            "scope": [
                "https://www.googleapis.com/auth/userinfo.email "
                "https://www.googleapis.com/auth/userinfo.profile"
            ],
            "response_type": ["code"],
            "access_type": ["offline"],
            "prompt": ["consent"],
        }

    def test_is_configured(self, google, settings):
        assert google.is_configured()
        bare = GoogleConnector(settings.model_copy(update={"google_client_secret": ""}))
        assert not bare.is_configured()

    @pytest.mark.asyncio
    async def test_fetch_profile(self, google, fake_google):
        profile = await google.fetch_profile("auth-code")

        assert profile.id == "109876543210"
        assert profile.email == "g.user@gmail.com"
        assert profile.name == "Google User"
        assert profile.avatar == fake_google.profile["picture"]
        assert profile.email_verified

        form = fake_google.token_requests[0]
        assert form["code"] == ["auth-code"]
        assert form["grant_type"] == ["authorization_code"]
        assert form["client_secret"] == ["secret-456"]

    @pytest.mark.asyncio
    async def test_missing_verified_flag_counts_as_unverified(self, google, fake_google):
        del fake_google.profile["verified_email"]

        profile = await google.fetch_profile("auth-code")

        assert profile.email_verified is False

    @pytest.mark.asyncio
    async def test_token_error_propagates(self, google, fake_google):
        fake_google.token_status = 400
        with pytest.raises(httpx.HTTPStatusError):
            await google.fetch_profile("bad-code")
