# =============================================================================
# datasource/remote/remote_client.py
# HTTP Client with Bearer Auth and Response Normalization
# =============================================================================

from __future__ import annotations
import time
from typing import Any, Dict, Optional
import logging

import requests

from datasource.config import DataSourceConfig
from datasource.secure import SecureStore
from datasource.remote.api_response import ApiResponse

logger = logging.getLogger(__name__)


class RemoteClient:
    """
    HTTP client for the application backend.

    Every call returns an ApiResponse; transport failures are converted into
    failed responses and never raised. Storage errors while reading the
    access token do propagate.

    Usage:
        client = RemoteClient(config, secure_store)
        response = client.get("/users/me")
        response = client.post("/posts", data={"title": "Hello"})
        response = client.get("/public", requires_auth=False)
    """

    def __init__(
        self,
        config: DataSourceConfig,
        secure_store: SecureStore,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.base_url = config.require_base_url()
        self.secure_store = secure_store
        self.session = session or requests.Session()

        if config.default_headers:
            self.session.headers.update(config.default_headers)

    def _build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _auth_headers(self, requires_auth: bool) -> Dict[str, str]:
        """Bearer header when auth is required and a token is stored."""
        if not requires_auth:
            return {}
        token = self.secure_store.get_access_token()
        if not token:
            logger.debug("No access token stored; sending request unauthenticated")
            return {}
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _parse_body(response: requests.Response) -> Any:
        """JSON body if parseable, else text; empty body is None."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _http_error(self, response: Optional[requests.Response]) -> ApiResponse:
        """Map a non-2xx transport response to a failed ApiResponse."""
        if response is None:
            return ApiResponse.error()

        if response.status_code == 401:
            return ApiResponse.unauthorized()

        body = self._parse_body(response)
        message = None
        error_code = None
        if isinstance(body, dict):
            if isinstance(body.get("message"), str):
                message = body["message"]
            server_code = body.get("errorCode") or body.get("code")
            if server_code is not None:
                error_code = str(server_code)

        return ApiResponse.error(
            status_code=response.status_code,
            message=message,
            error_code=error_code or f"HTTP_{response.status_code}",
        )

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        data: Any = None,
        files: Optional[Dict[str, Any]] = None,
        requires_auth: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        """
        Send a request and normalize the outcome.

        Args:
            method: HTTP verb
            path: Path relative to base_url, or an absolute URL
            params: Query parameters
            data: JSON body, or form fields when files are given
            files: Multipart files, as accepted by requests
            requires_auth: Attach the stored access token as a bearer credential
            headers: Extra headers for this request only

        Returns:
            ApiResponse describing success or failure
        """
        method = method.upper()
        url = self._build_url(path)
        request_headers = {**(headers or {}), **self._auth_headers(requires_auth)}

        body_kwargs: Dict[str, Any] = {}
        if files:
            body_kwargs["files"] = files
            if data is not None:
                body_kwargs["data"] = data
        elif data is not None:
            body_kwargs["json"] = data

        started = time.time()
        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                headers=request_headers,
                timeout=self.config.timeout,
                **body_kwargs,
            )
            response.raise_for_status()

        except requests.exceptions.Timeout:
            logger.warning(f"{method} {url} timed out")
            return ApiResponse.timeout()

        except requests.exceptions.ConnectionError as e:
            logger.warning(f"{method} {url} failed to connect: {e}")
            return ApiResponse.network_error()

        except requests.exceptions.HTTPError as e:
            result = self._http_error(e.response)
            logger.warning(f"{method} {url} -> {result.status_code} [{result.error_code}]")
            return result

        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}", exc_info=True)
            return ApiResponse.error()

        if self.config.log_requests:
            logger.debug(
                f"{method} {url} -> {response.status_code} ({time.time() - started:.2f}s)"
            )
        return ApiResponse.success(self._parse_body(response), status_code=response.status_code)

    # =========================================================================
    # VERBS
    # =========================================================================

    def get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        requires_auth: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        return self.request("GET", path, params=params, requires_auth=requires_auth, headers=headers)

    def post(
        self,
        path: str,
        data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        requires_auth: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        return self.request("POST", path, params=params, data=data, requires_auth=requires_auth, headers=headers)

    def put(
        self,
        path: str,
        data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        requires_auth: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        return self.request("PUT", path, params=params, data=data, requires_auth=requires_auth, headers=headers)

    def patch(
        self,
        path: str,
        data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        requires_auth: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        return self.request("PATCH", path, params=params, data=data, requires_auth=requires_auth, headers=headers)

    def delete(
        self,
        path: str,
        data: Any = None,
        params: Optional[Dict[str, Any]] = None,
        requires_auth: bool = True,
        headers: Optional[Dict[str, str]] = None,
    ) -> ApiResponse:
        return self.request("DELETE", path, params=params, data=data, requires_auth=requires_auth, headers=headers)

    def upload(
        self,
        path: str,
        files: Dict[str, Any],
        data: Optional[Dict[str, Any]] = None,
        requires_auth: bool = True,
    ) -> ApiResponse:
        """
        Multipart POST.

        Args:
            path: Upload endpoint
            files: {"field": file_object} or {"field": (filename, fileobj, content_type)}
            data: Additional form fields
        """
        if not files:
            raise ValueError("upload() requires at least one file")
        return self.request("POST", path, data=data, files=files, requires_auth=requires_auth)

    def close(self) -> None:
        self.session.close()
