"""A small fluent builder around HTTP calls with JSON bodies."""

from __future__ import annotations

import json
from typing import Any, MutableMapping

import requests

_SIGNIN_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:109.0) "
        "Gecko/20100101 Firefox/113.0"
    ),
    "Accept": "application/json",
    "Accept-Language": "en-US,en;q=0.5",
    "Content-Type": "application/json",
    "Referer": "https://companion.signin.app/",
    "X-App-Version": "Web companion app/1.0.3",
    "Origin": "https://companion.signin.app",
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "cross-site",
    "Connection": "keep-alive",
    "TE": "trailers",
}


class RequestError(Exception):
    """Raised when a request cannot be built, sent or decoded."""


class Request:
    """An HTTP request whose body is ``body`` encoded as JSON."""

    def __init__(self, body: Any = None) -> None:
        self._body = body
        self._url = ""
        self._method = ""
        self._headers: dict[str, str] = {}
        self._session: requests.Session | None = None
        self._timeout = 60.0
        self._expected_status: int | None = None
        self._decode_body = False
        self._response_headers: MutableMapping[str, str] | None = None

    def with_url(self, url: str) -> Request:
        self._url = url
        return self

    def with_method(self, method: str) -> Request:
        self._method = method
        return self

    def with_header(self, key: str, value: str) -> Request:
        self._headers[key] = value
        return self

    def with_signin_headers(self, bearer: str) -> Request:
        """Add the headers the sign-in backend expects, with the bearer token."""
        for key, value in _SIGNIN_HEADERS.items():
            self.with_header(key, value)
        return self.with_header("Authorization", f"Bearer {bearer}")

    def with_session(self, session: requests.Session) -> Request:
        """Use ``session`` instead of a fresh one."""
        self._session = session
        return self

    def with_timeout(self, value: float) -> Request:
        """Set the timeout in seconds (one minute by default)."""
        self._timeout = value
        return self

    def with_expected_status(self, code: int) -> Request:
        """Fail unless the response has this status code."""
        self._expected_status = code
        return self

    def with_response_body(self) -> Request:
        """Decode the JSON response body and return it from :meth:`send`."""
        self._decode_body = True
        return self

    def with_response_headers(self, headers: MutableMapping[str, str]) -> Request:
        """Copy the response headers into ``headers``."""
        self._response_headers = headers
        return self

    def _validate(self) -> None:
        if not self._url:
            raise RequestError("validating request : url has not been set")
        if not self._method:
            raise RequestError("validating request : http method has not been set")

    def send(self) -> Any:
        """Perform the request; return the decoded body if one was asked for."""
        self._validate()
        try:
            payload = json.dumps(self._body, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise RequestError(f"error marshalling request {exc}") from exc

        session = self._session or requests.Session()
        try:
            try:
                response = session.request(
                    self._method,
                    self._url,
                    data=payload,
                    headers=self._headers,
                    timeout=self._timeout,
                )
            except requests.RequestException as exc:
                raise RequestError(f"error executing request {exc}") from exc
            with response:
                return self._decode(response)
        finally:
            if self._session is None:
                session.close()

    def _decode(self, response: requests.Response) -> Any:
        if self._expected_status is not None and response.status_code != self._expected_status:
            raise RequestError(
                f"{self._url} expected code {self._expected_status}, "
                f"got {response.status_code} - message: {response.text}"
            )
        if self._response_headers is not None:
            self._response_headers.update(response.headers)
        if not self._decode_body:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RequestError(f"cannot read response body: {exc}") from exc