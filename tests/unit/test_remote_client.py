# =============================================================================
# tests/unit/test_remote_client.py
# Unit Tests for RemoteClient
# =============================================================================

import io
from typing import Any, Dict, Optional, get_type_hints
from unittest.mock import MagicMock

import pytest
import requests

from datasource.config import DataSourceConfig
from datasource.errors import ConfigurationError
from datasource.remote import RemoteClient
from datasource.secure import SecureStore


@pytest.fixture
def client(config, secure_store, mock_session):
    return RemoteClient(config, secure_store, session=mock_session)


def sent_kwargs(session):
    return session.request.call_args.kwargs


class TestRemoteClientAuth:
    """Test bearer-token injection"""

    def test_bearer_header_attached_when_token_stored(self, client, secure_store, mock_session):
        secure_store.set_tokens("abc123", "xyz789")

        client.get("/users/me")

        assert sent_kwargs(mock_session)["headers"]["Authorization"] == "Bearer abc123"

    def test_no_token_sends_unauthenticated(self, client, mock_session):
        response = client.get("/users/me")

        assert response.succeeded
        assert "Authorization" not in sent_kwargs(mock_session)["headers"]

    def test_requires_auth_false_skips_header(self, client, secure_store, mock_session):
        secure_store.set_tokens("abc123")

        client.get("/public", requires_auth=False)

        assert "Authorization" not in sent_kwargs(mock_session)["headers"]

    def test_token_is_read_per_request(self, client, secure_store, mock_session):
        secure_store.set_tokens("first")
        client.get("/a")
        secure_store.set_tokens("second")
        client.get("/b")

        assert sent_kwargs(mock_session)["headers"]["Authorization"] == "Bearer second"


class TestRemoteClientRequests:
    """Test request construction"""

    def test_url_joins_base_and_path(self, client, mock_session):
        client.get("users/me")
        assert sent_kwargs(mock_session)["url"] == "https://api.example.test/v1/users/me"

    def test_absolute_url_bypasses_base(self, client, mock_session):
        client.get("https://cdn.example.test/file.json")
        assert sent_kwargs(mock_session)["url"] == "https://cdn.example.test/file.json"

    def test_post_sends_json_body_and_params(self, client, mock_session):
        client.post("/posts", data={"title": "Hello"}, params={"draft": "1"})

        kwargs = sent_kwargs(mock_session)
        assert kwargs["method"] == "POST"
        assert kwargs["json"] == {"title": "Hello"}
        assert kwargs["params"] == {"draft": "1"}

    @pytest.mark.parametrize("verb", ["put", "patch", "delete"])
    def test_other_verbs(self, client, mock_session, verb):
        getattr(client, verb)("/posts/1", data={"x": 1})
        assert sent_kwargs(mock_session)["method"] == verb.upper()

    @pytest.mark.parametrize("verb", ["get", "post", "put", "patch", "delete"])
    def test_verb_signatures_are_annotated(self, verb):
        hints = get_type_hints(getattr(RemoteClient, verb))

        assert hints["params"] == Optional[Dict[str, Any]]
        assert hints["headers"] == Optional[Dict[str, str]]
        if verb != "get":
            assert hints["data"] == Any

    def test_timeout_tuple_from_config(self, client, mock_session, config):
        client.get("/x")
        assert sent_kwargs(mock_session)["timeout"] == (config.connect_timeout, config.receive_timeout)

    def test_default_headers_applied_to_session(self, client, mock_session):
        assert mock_session.headers["Accept"] == "application/json"

    def test_upload_sends_multipart(self, client, mock_session):
        files = {"file": ("avatar.png", io.BytesIO(b"png"), "image/png")}

        response = client.upload("/media", files=files, data={"alt": "me"})

        kwargs = sent_kwargs(mock_session)
        assert response.succeeded
        assert kwargs["method"] == "POST"
        assert kwargs["files"] is files
        assert kwargs["data"] == {"alt": "me"}
        assert "json" not in kwargs

    def test_upload_without_files_rejected(self, client):
        with pytest.raises(ValueError):
            client.upload("/media", files={})

    def test_missing_base_url_is_configuration_error(self, tmp_path, secure_store):
        with pytest.raises(ConfigurationError):
            RemoteClient(DataSourceConfig(storage_dir=tmp_path), secure_store, session=MagicMock())


class TestRemoteClientNormalization:
    """Test success-path body normalization"""

    def test_envelope_response(self, client, mock_session, http_response):
        mock_session.request.return_value = http_response(
            200, json_body={"status": 200, "message": "ok", "data": {"id": 1}}
        )

        response = client.get("/users/1")

        assert response.succeeded
        assert response.data == {"id": 1}
        assert response.message == "ok"

    def test_raw_response(self, client, mock_session, http_response):
        mock_session.request.return_value = http_response(200, json_body=[1, 2, 3])

        response = client.get("/numbers")

        assert response.status_code == 200
        assert response.data == [1, 2, 3]

    def test_text_response(self, client, mock_session, http_response):
        mock_session.request.return_value = http_response(200, text="pong")
        assert client.get("/ping").data == "pong"

    def test_empty_response(self, client, mock_session, http_response):
        mock_session.request.return_value = http_response(204)

        response = client.delete("/posts/1")

        assert response.succeeded
        assert response.status_code == 204
        assert response.data is None


class TestRemoteClientFailures:
    """Test that transport failures become ApiResponse values"""

    def test_connection_error_is_network_error(self, client, mock_session):
        mock_session.request.side_effect = requests.exceptions.ConnectionError("unreachable")

        response = client.get("/users/me")

        assert not response.succeeded
        assert response.status_code == 0
        assert response.error_code == "NETWORK_ERROR"

    def test_read_timeout(self, client, mock_session):
        mock_session.request.side_effect = requests.exceptions.ReadTimeout("slow")

        response = client.get("/slow")

        assert response.status_code == 408
        assert response.error_code == "TIMEOUT"

    def test_connect_timeout_is_timeout_not_network(self, client, mock_session):
        mock_session.request.side_effect = requests.exceptions.ConnectTimeout("slow")
        assert client.get("/slow").error_code == "TIMEOUT"

    def test_401_is_unauthorized(self, client, mock_session, http_response):
        mock_session.request.return_value = http_response(401, json_body={"message": "expired"})

        response = client.get("/users/me")

        assert response.status_code == 401
        assert response.error_code == "UNAUTHORIZED"
        assert response.data is None

    def test_server_error_uses_body_message_and_code(self, client, mock_session, http_response):
        mock_session.request.return_value = http_response(
            422, json_body={"message": "Title required", "errorCode": "VALIDATION"}
        )

        response = client.post("/posts", data={})

        assert response.status_code == 422
        assert response.message == "Title required"
        assert response.error_code == "VALIDATION"

    def test_server_error_without_body(self, client, mock_session, http_response):
        mock_session.request.return_value = http_response(503)

        response = client.get("/x")

        assert response.status_code == 503
        assert response.message == "An error occurred"
        assert response.error_code == "HTTP_503"

    def test_other_request_exception_is_generic_error(self, client, mock_session):
        mock_session.request.side_effect = requests.exceptions.TooManyRedirects("loop")

        response = client.get("/loop")

        assert response.status_code == 500
        assert not response.succeeded

    def test_no_retry_on_failure(self, client, mock_session):
        mock_session.request.side_effect = requests.exceptions.ConnectionError()
        client.get("/x")
        assert mock_session.request.call_count == 1

    def test_storage_error_while_reading_token_propagates(self, config, mock_session):
        from datasource.errors import SecureStorageError

        closed_store = SecureStore(config.secure_db_path, key=config.secure_key)
        client = RemoteClient(config, closed_store, session=mock_session)

        with pytest.raises(SecureStorageError):
            client.get("/users/me")
        mock_session.request.assert_not_called()
