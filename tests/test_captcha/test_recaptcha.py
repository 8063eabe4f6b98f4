from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.captcha.recaptcha import RecaptchaVerification, RecaptchaVerifier
from src.config import RECAPTCHA_VERIFY_URL
from src.handlers.errors import UpstreamError
from tests.fixtures.subscribe_fakes import make_settings


def _verifier() -> RecaptchaVerifier:
    return RecaptchaVerifier(secret_key="secret-key", verify_url=RECAPTCHA_VERIFY_URL, http_timeout_seconds=5.0)


def _mock_client(mock_client_cls: MagicMock, response: MagicMock | None = None) -> AsyncMock:
    mock_client = AsyncMock()
    if response is not None:
        mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client_cls.return_value = mock_client
    return mock_client


class TestRecaptchaVerification:
    def test_parses_error_codes_alias(self) -> None:
        result = RecaptchaVerification.model_validate(
            {"success": False, "error-codes": ["invalid-input-secret"], "hostname": "example.com"}
        )
        assert result.success is False
        assert result.error_codes == ["invalid-input-secret"]
        assert result.score is None

    def test_defaults(self) -> None:
        result = RecaptchaVerification.model_validate({})
        assert result.success is False
        assert result.error_codes == []


class TestRecaptchaVerifier:
    def test_from_settings(self) -> None:
        verifier = RecaptchaVerifier.from_settings(make_settings(recaptcha_secret_key="abc"))
        assert verifier._secret_key == "abc"
        assert verifier._verify_url == RECAPTCHA_VERIFY_URL

    @pytest.mark.asyncio
    async def test_posts_secret_token_and_ip(self) -> None:
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {"success": True, "score": 0.7, "action": "subscribe"}

        with patch("src.captcha.recaptcha.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client(mock_client_cls, response)
            result = await _verifier().verify("token-abc", "1.2.3.4")

        assert result.success is True
        assert result.score == 0.7
        assert result.action == "subscribe"
        call_args = mock_client.post.call_args
        assert call_args[0][0] == RECAPTCHA_VERIFY_URL
        assert call_args[1]["data"] == {"secret": "secret-key", "response": "token-abc", "remoteip": "1.2.3.4"}
        mock_client_cls.assert_called_once_with(timeout=5.0)

    @pytest.mark.asyncio
    async def test_omits_remote_ip_when_unknown(self) -> None:
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {"success": True, "score": 0.9}

        with patch("src.captcha.recaptcha.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client(mock_client_cls, response)
            await _verifier().verify("token-abc")

        assert "remoteip" not in mock_client.post.call_args[1]["data"]

    @pytest.mark.asyncio
    async def test_failed_verification_is_returned_not_raised(self) -> None:
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {"success": False, "error-codes": ["timeout-or-duplicate"]}

        with patch("src.captcha.recaptcha.httpx.AsyncClient") as mock_client_cls:
            _mock_client(mock_client_cls, response)
            result = await _verifier().verify("stale-token")

        assert result.success is False
        assert result.error_codes == ["timeout-or-duplicate"]

    @pytest.mark.asyncio
    async def test_http_error_status_raises_upstream_error(self) -> None:
        response = MagicMock()
        response.status_code = 503
        response.text = "unavailable"

        with patch("src.captcha.recaptcha.httpx.AsyncClient") as mock_client_cls:
            _mock_client(mock_client_cls, response)
            with pytest.raises(UpstreamError, match="HTTP 503"):
                await _verifier().verify("token")

    @pytest.mark.asyncio
    async def test_network_error_raises_upstream_error(self) -> None:
        with patch("src.captcha.recaptcha.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client(mock_client_cls)
            mock_client.post.side_effect = httpx.ConnectError("connection refused")
            with pytest.raises(UpstreamError, match="connection refused"):
                await _verifier().verify("token")

    @pytest.mark.asyncio
    async def test_non_json_body_raises_upstream_error(self) -> None:
        response = MagicMock()
        response.status_code = 200
        response.text = "<html>captive portal</html>"
        response.json.side_effect = ValueError("Expecting value")

        with patch("src.captcha.recaptcha.httpx.AsyncClient") as mock_client_cls:
            _mock_client(mock_client_cls, response)
            with pytest.raises(UpstreamError, match="invalid response"):
                await _verifier().verify("token")

    @pytest.mark.asyncio
    async def test_non_object_body_raises_upstream_error(self) -> None:
        response = MagicMock()
        response.status_code = 200
        response.text = "[]"
        response.json.return_value = ["not", "an", "object"]

        with patch("src.captcha.recaptcha.httpx.AsyncClient") as mock_client_cls:
            _mock_client(mock_client_cls, response)
            with pytest.raises(UpstreamError, match="invalid response"):
                await _verifier().verify("token")
