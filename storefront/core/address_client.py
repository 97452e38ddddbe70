# storefront/core/address_client.py
"""
Client for the administrative-division directory (provinces.open-api.vn).

Responsibilities:
  - Fetch provinces, districts of a province, wards of a district.
  - Retry transient failures a fixed number of times with a fixed delay.
  - Cache successful lookups for the lifetime of the client (the directory
    is read-only reference data).

Endpoints used:
    GET {base}/?depth=1          -> [ {code, name, ...}, ... ]
    GET {base}/p/{code}?depth=2  -> {code, name, districts: [...]}
    GET {base}/d/{code}?depth=2  -> {code, name, wards: [...]}
"""
import logging
import time
from functools import lru_cache
from typing import Any, Callable

import requests

from storefront.core.config import get_settings
from storefront.core.errors import AddressLookupError
from storefront.schemas.address import District, Province, Ward

logger = logging.getLogger(__name__)


class _Transient(Exception):
    """Retryable failure (network error, timeout, 5xx)."""


class AddressDirectoryClient:
    def __init__(
        self,
        base_url: str,
        *,
        http: requests.Session | None = None,
        retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.retries = retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.sleep = sleep

        self._provinces: list[Province] | None = None
        self._districts: dict[str, list[District]] = {}
        self._wards: dict[str, list[Ward]] = {}

    # ----- HTTP -----

    def _get_once(self, path: str) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.get(url, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise _Transient(str(e))

        if response.status_code == 404:
            return None
        if response.status_code >= 500:
            raise _Transient(f"HTTP {response.status_code}")
        response.raise_for_status()
        return response.json()

    def _get(self, path: str) -> Any:
        """
        GET with retries: one initial attempt plus `retries` retries,
        `retry_delay` seconds apart.
        """
        attempt = 0
        while True:
            try:
                return self._get_once(path)
            except _Transient as e:
                if attempt >= self.retries:
                    logger.error("Address lookup %s failed after %d attempts: %s", path, attempt + 1, e)
                    raise AddressLookupError()
                attempt += 1
                logger.warning("Address lookup %s failed (%s), retry %d/%d", path, e, attempt, self.retries)
                self.sleep(self.retry_delay)
            except requests.RequestException as e:
                logger.error("Address lookup %s rejected: %s", path, e)
                raise AddressLookupError()

    # ----- Lookups -----

    def load_provinces(self) -> list[Province]:
        if self._provinces is None:
            payload = self._get("/?depth=1") or []
            self._provinces = [
                Province(code=str(p["code"]), name=p["name"]) for p in payload
            ]
        return list(self._provinces)

    def load_districts(self, province_code: str) -> list[District]:
        if not province_code:
            return []
        if province_code not in self._districts:
            payload = self._get(f"/p/{province_code}?depth=2") or {}
            self._districts[province_code] = [
                District(
                    code=str(d["code"]),
                    name=d["name"],
                    province_code=str(d.get("province_code", province_code)),
                )
                for d in payload.get("districts") or []
            ]
        return list(self._districts[province_code])

    def load_wards(self, district_code: str) -> list[Ward]:
        if not district_code:
            return []
        if district_code not in self._wards:
            payload = self._get(f"/d/{district_code}?depth=2") or {}
            self._wards[district_code] = [
                Ward(
                    code=str(w["code"]),
                    name=w["name"],
                    district_code=str(w.get("district_code", district_code)),
                )
                for w in payload.get("wards") or []
            ]
        return list(self._wards[district_code])


@lru_cache
def get_address_client() -> AddressDirectoryClient:
    settings = get_settings()
    return AddressDirectoryClient(
        settings.ADDRESS_API_BASE_URL,
        retries=settings.ADDRESS_API_RETRIES,
        retry_delay=settings.ADDRESS_API_RETRY_DELAY,
        timeout=settings.ADDRESS_API_TIMEOUT,
    )
