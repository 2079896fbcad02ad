"""
Tests for avatar storage and the mailer.
"""

import io
from unittest.mock import MagicMock, patch

import pytest

from utils.avatars import gravatar_url, move_avatar, stash_upload
from utils.mailer import Mailer, MailMessage


class TestAvatars:
    def test_gravatar_is_deterministic(self):
        assert gravatar_url("A@B.com ") == gravatar_url("a@b.com")
        assert gravatar_url("a@b.com") == (
            "https://www.gravatar.com/avatar/357a20e8c56e69d6f9734d23ef9517e8"
        )

    @pytest.mark.asyncio
    async def test_stash_then_move(self, tmp_path):
        tmp = await stash_upload(io.BytesIO(b"img"), "../../me.png", tmp_path / "tmp")

        assert tmp.parent == tmp_path / "tmp"
        assert tmp.name.endswith("_me.png")

        ref = await move_avatar(tmp, tmp_path / "public", "profileAvatar")

        assert ref == f"profileAvatar/{tmp.name}"
        assert (tmp_path / "public" / ref).read_bytes() == b"img"
        assert not tmp.exists()


class TestMailer:
    @pytest.mark.asyncio
    async def test_log_transport_skips_smtp(self, settings):
        mailer = Mailer(settings)
        with patch("utils.mailer.smtplib") as smtp:
            await mailer.send(MailMessage(to="a@b.com", subject="Hi", text="Body"))
        smtp.SMTP_SSL.assert_not_called()
        smtp.SMTP.assert_not_called()

    @pytest.mark.asyncio
    async def test_smtp_requires_credentials(self, settings):
        mailer = Mailer(settings.model_copy(update={"mail_transport": "smtp"}))
        with pytest.raises(RuntimeError):
            await mailer.send(MailMessage(to="a@b.com", subject="Hi", text="Body"))

    @pytest.mark.asyncio
    async def test_smtp_ssl_send(self, settings):
        mailer = Mailer(
            settings.model_copy(
                update={
                    "mail_transport": "smtp",
                    "smtp_host": "smtp.test",
                    "smtp_user": "bot@test",
                    "smtp_password": "pw",
                }
            )
        )
        server = MagicMock()
        with patch("utils.mailer.smtplib.SMTP_SSL") as smtp_ssl:
            smtp_ssl.return_value.__enter__.return_value = server
            await mailer.send(MailMessage(to="a@b.com", subject="Hi", text="Body"))

        server.login.assert_called_once_with("bot@test", "pw")
        sent = server.send_message.call_args[0][0]
        assert sent["To"] == "a@b.com"
        assert sent["From"] == "bot@test"
        assert sent["Subject"] == "Hi"
        assert sent.get_content().strip() == "Body"
