"""
REST gateway for the storefront backend.
"""
import time
import logging
from typing import Any, Dict, Optional

import requests

from adapters.base import GatewayResponse, StoreGateway
from adapters.store_api.http_session import get_session, reset_session
from config.settings import settings
from core.exceptions import GatewayError

logger = logging.getLogger(__name__)


class RestStoreGateway(StoreGateway):
    """
    Talks to /api/v1/store/{storeId}/... with a bearer token.

    Transport failures (timeouts after retry, connection errors, non-2xx,
    non-JSON bodies) come back as GatewayResponse(success=False).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_backoff: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.STORE_API_URL).rstrip("/")
        self.access_token = access_token if access_token is not None else settings.STORE_API_TOKEN
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.max_attempts = max(1, max_attempts if max_attempts is not None else settings.MAX_ATTEMPTS)
        self.retry_backoff = retry_backoff if retry_backoff is not None else settings.RETRY_BACKOFF

    # ------------------------------------------------
    # Transport
    # ------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["authorization"] = "Bearer " + self.access_token
        return headers

    def _url(self, store_id: str, *parts: str) -> str:
        path = "/".join([store_id, *parts])
        return f"{self.base_url}/api/v1/store/{path}"

    def _send(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        Issue one HTTP call, retrying on timeout/connection errors.

        Raises:
            GatewayError: the backend could not be reached
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return get_session().request(
                    method,
                    url,
                    params=params,
                    json=body,
                    headers=self._headers(),
                    timeout=self.timeout,
                )
            except (requests.Timeout, requests.ConnectionError) as exc:
                if attempt == self.max_attempts:
                    raise GatewayError(
                        f"Connection failed after {self.max_attempts} attempts: {exc}"
                    ) from exc
                logger.warning(f"{method} {url} attempt {attempt} failed: {exc}; retrying")
                time.sleep(self.retry_backoff)
            except requests.RequestException as exc:
                raise GatewayError(f"Request failed: {exc}") from exc

    def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> GatewayResponse:
        try:
            response = self._send(method, url, params=params, body=body)
        except GatewayError as e:
            logger.error(f"{method} {url}: {e}")
            return GatewayResponse.fail(str(e))

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not 200 <= response.status_code < 300:
            logger.error(f"{method} {url} HTTP {response.status_code}: {response.text}")
            detail = GatewayResponse.from_json(payload).message if isinstance(payload, dict) else ""
            detail = detail or response.text
            return GatewayResponse.fail(f"HTTP {response.status_code}: {detail}")

        if payload is None:
            logger.error(f"{method} {url} returned a non-JSON body")
            return GatewayResponse.fail("Backend returned a non-JSON body")

        return GatewayResponse.from_json(payload)

    @staticmethod
    def _page_params(page: Optional[int], limit: Optional[int]) -> Dict[str, int]:
        params = {}
        if page:
            params["page"] = page
        if limit:
            params["limit"] = limit
        return params

    def close(self) -> None:
        reset_session()

    # ------------------------------------------------
    # Orders
    # ------------------------------------------------

    def get_store_orders(self, store_id, page=None, limit=None):
        return self._request(
            "GET",
            self._url(store_id, "orders"),
            params=self._page_params(page, limit or settings.PAGE_LIMIT),
        )

    def get_store_order(self, store_id, order_id):
        return self._request("GET", self._url(store_id, "orders", order_id))

    def update_store_order(self, store_id, order_id, patch):
        return self._request("PATCH", self._url(store_id, "orders", order_id), body=patch)

    # ------------------------------------------------
    # Transactions
    # ------------------------------------------------

    def get_store_transactions(self, store_id, page=None, limit=None):
        return self._request(
            "GET",
            self._url(store_id, "transactions"),
            params=self._page_params(page, limit or settings.PAGE_LIMIT),
        )

    def update_transaction_by_order_id(self, store_id, order_id, status):
        return self._request(
            "PATCH",
            self._url(store_id, "orders", order_id, "transactions"),
            body={"status": status},
        )
