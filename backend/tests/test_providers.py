"""
Faxon Portal API — Provider Client Tests
=========================================

What:  Wire-level behaviour of the Supabase, WorkDrive and Brevo clients.
How:   Each client gets an httpx.MockTransport; no network access.
"""

import logging

import httpx
import pytest

from faxon_api.exceptions import EmailDeliveryError, StorageProviderError
from faxon_api.services.background import run_best_effort
from faxon_api.services.providers import BrevoMailer, SupabaseStorage, ZohoWorkDrive
from faxon_api.services.providers.brevo_mailer import OTP_RESEND_SUBJECT
from faxon_api.services.providers.zoho_workdrive import extract_file_id


class TestSupabaseStorage:

    def _storage(self, transport, **kwargs):
        options = {
            "base_url": "https://project.supabase.co/",
            "service_key": "service-key",
            "bucket": "faxon-bucket",
            "transport": transport,
        }
        options.update(kwargs)
        return SupabaseStorage(**options)

    @pytest.mark.asyncio
    async def test_upload_sends_service_key(self, make_transport):
        transport = make_transport()
        storage = self._storage(transport)

        url = await storage.upload("products/a.webp", b"data", "image/webp")

        assert url == "https://project.supabase.co/storage/v1/object/public/faxon-bucket/products/a.webp"
        sent = transport.requests[0]
        assert sent.headers["authorization"] == "Bearer service-key"
        assert sent.headers["apikey"] == "service-key"
        assert sent.headers["x-upsert"] == "false"

    @pytest.mark.asyncio
    async def test_upload_error_status(self, make_transport):
        storage = self._storage(make_transport(status_code=400, body={"error": "bad"}))

        with pytest.raises(StorageProviderError) as exc_info:
            await storage.upload("a.jpg", b"x", "image/jpeg")

        assert exc_info.value.context["status"] == 400
        assert exc_info.value.provider == "supabase"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def _refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        storage = self._storage(httpx.MockTransport(_refuse))

        with pytest.raises(StorageProviderError):
            await storage.delete(["a.jpg"])

    @pytest.mark.asyncio
    async def test_not_configured(self, make_transport):
        transport = make_transport()
        storage = self._storage(transport, base_url="", service_key="")

        with pytest.raises(StorageProviderError) as exc_info:
            await storage.upload("a.jpg", b"x", "image/jpeg")

        assert exc_info.value.message == "File storage is not configured"
        assert transport.requests == []

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://p.supabase.co/storage/v1/object/public/faxon-bucket/products/a.jpg", "products/a.jpg"),
            ("https://p.supabase.co/storage/v1/object/public/faxon-bucket/x/y/z.png", "x/y/z.png"),
            ("https://p.supabase.co/storage/v1/object/public/faxon-bucket/my%20file.jpg", "my file.jpg"),
            ("https://p.supabase.co/storage/v1/object/public/faxon-bucket", None),
            ("https://example.com/images/a.jpg", None),
        ],
    )
    def test_path_from_url(self, url, expected):
        storage = self._storage(None)
        assert storage.path_from_url(url) == expected


class TestZohoWorkDrive:

    @pytest.mark.asyncio
    async def test_delete_moves_file_to_trash(self, make_transport):
        transport = make_transport(body={"data": {}})
        drive = ZohoWorkDrive(
            api_base="https://www.zohoapis.com/workdrive/api/v1",
            access_token="token",
            transport=transport,
        )

        await drive.delete_file("abc123")

        sent = transport.requests[0]
        assert sent.method == "PATCH"
        assert sent.url.path == "/workdrive/api/v1/files/abc123"
        assert sent.headers["authorization"] == "Zoho-oauthtoken token"
        assert transport.json_body() == {
            "data": {"attributes": {"status": "51"}, "type": "files"}
        }

    @pytest.mark.asyncio
    async def test_delete_error_status(self, make_transport):
        drive = ZohoWorkDrive(access_token="token", transport=make_transport(status_code=401))

        with pytest.raises(StorageProviderError) as exc_info:
            await drive.delete_file("abc123")

        assert exc_info.value.context["status"] == 401

    @pytest.mark.asyncio
    async def test_delete_without_token(self, make_transport):
        transport = make_transport()
        drive = ZohoWorkDrive(access_token="", transport=transport)

        with pytest.raises(StorageProviderError):
            await drive.delete_file("abc123")
        assert transport.requests == []

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://workdrive.zoho.com/file/abc123XYZ", "abc123XYZ"),
            ("https://workdrive.zoho.com/file/abc123/preview", "abc123"),
            ("https://workdrive.zoho.com/folder/abc123", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract_file_id(self, url, expected):
        assert extract_file_id(url) == expected


class TestBrevoMailer:

    @pytest.mark.asyncio
    async def test_send_otp_payload(self, make_transport):
        transport = make_transport(status_code=201, body={"messageId": "<1@brevo>"})
        mailer = BrevoMailer(
            api_base="https://api.brevo.com/v3",
            api_key="brevo-key",
            sender_email="no-reply@faxon.example",
            sender_name="Faxon",
            transport=transport,
        )

        await mailer.send_otp("alice@faxon.example", "Alice <Admin>", "482913")

        sent = transport.requests[0]
        assert sent.url.path == "/v3/smtp/email"
        assert sent.headers["api-key"] == "brevo-key"
        payload = transport.json_body()
        assert payload["sender"] == {"name": "Faxon", "email": "no-reply@faxon.example"}
        assert payload["to"] == [{"email": "alice@faxon.example", "name": "Alice <Admin>"}]
        assert "482913" in payload["htmlContent"]
        assert "Alice &lt;Admin&gt;" in payload["htmlContent"]

    @pytest.mark.asyncio
    async def test_resend_subject(self, make_transport):
        transport = make_transport(status_code=201, body={"messageId": "<2@brevo>"})
        mailer = BrevoMailer(api_key="brevo-key", transport=transport)

        await mailer.send_otp("alice@faxon.example", "Alice", "123456", resend=True)

        assert transport.json_body()["subject"] == OTP_RESEND_SUBJECT

    @pytest.mark.asyncio
    async def test_rejected_message(self, make_transport):
        mailer = BrevoMailer(api_key="brevo-key", transport=make_transport(status_code=400))

        with pytest.raises(EmailDeliveryError) as exc_info:
            await mailer.send_otp("alice@faxon.example", "Alice", "123456")

        assert exc_info.value.message == "Failed to send OTP email. Please try again."

    @pytest.mark.asyncio
    async def test_without_api_key(self, make_transport):
        transport = make_transport()
        mailer = BrevoMailer(api_key="", transport=transport)

        with pytest.raises(EmailDeliveryError):
            await mailer.send_otp("alice@faxon.example", "Alice", "123456")
        assert transport.requests == []


class TestRunBestEffort:

    @pytest.mark.asyncio
    async def test_success(self):
        calls = []

        async def _work(value):
            calls.append(value)

        assert await run_best_effort("work", _work, 7) is True
        assert calls == [7]

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, caplog):
        async def _boom():
            raise StorageProviderError(message="WorkDrive down", context={"status": 503})

        with caplog.at_level(logging.ERROR, logger="faxon.background"):
            assert await run_best_effort("zoho_delete", _boom) is False

        assert "zoho_delete" in caplog.text
        assert "WorkDrive down" in caplog.text
