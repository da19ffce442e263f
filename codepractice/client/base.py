from __future__ import annotations

import logging
import time

import requests

from codepractice.session.common import UserContext
from codepractice.session.errors import (
    ApiError,
    NotFound,
    TransportError,
    Unauthorized,
)


class BaseApiClient:
    """Thin JSON client over a shared ``requests.Session``.

    Only GETs are retried. Writes go out exactly once.
    """

    USER_AGENT = 'codepractice/0.1'

    def __init__(self, base_url: str, timeout: float = 30.0, max_retries: int = 3):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.logger = logging.getLogger(f'client.{type(self).__name__}')
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            'User-Agent': self.USER_AGENT,
            'Content-Type': 'application/json',
        })
        return session

    def _headers(self, ctx: UserContext) -> dict:
        if ctx.token:
            return {'Authorization': f'Bearer {ctx.token}'}
        return {}

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, ctx: UserContext, method: str, path: str, **kwargs):
        """Send one request and return the decoded JSON body.

        Raises the session error that matches the response: ``NotFound``,
        ``Unauthorized``, ``ApiError`` for other non-2xx answers and
        ``TransportError`` when no response arrived at all.
        """
        retries = self.max_retries if method == 'GET' else 1
        url = self._url(path)
        for attempt in range(retries):
            try:
                resp = self.session.request(
                    method, url, headers=self._headers(ctx), timeout=self.timeout, **kwargs
                )
            except requests.RequestException as e:
                self.logger.warning(
                    f"{method} {url} failed (attempt {attempt + 1}/{retries}): {e}"
                )
                if attempt < retries - 1:
                    time.sleep(2 ** attempt)
                    continue
                raise TransportError(str(e)) from e
            if resp.status_code >= 500 and attempt < retries - 1:
                self.logger.warning(
                    f"{method} {url} returned {resp.status_code} "
                    f"(attempt {attempt + 1}/{retries})"
                )
                time.sleep(2 ** attempt)
                continue
            return self._handle_response(resp)

    def _handle_response(self, resp: requests.Response):
        body = self._json(resp)
        if resp.ok:
            if body is None:
                raise ApiError(resp.status_code, 'Malformed response from backend')
            return body

        message = ''
        code = None
        if isinstance(body, dict):
            message = body.get('error') or body.get('message') or ''
            code = body.get('code')

        if resp.status_code == 401:
            raise Unauthorized(message or 'Authentication required')
        if resp.status_code == 404:
            raise NotFound(message or 'Not found')
        raise ApiError(resp.status_code, message, code)

    @staticmethod
    def _json(resp: requests.Response):
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError:
            return None
