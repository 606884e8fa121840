"""
HTTP client for the registrar wholesale API.

Uses httpx.AsyncClient for non-blocking HTTP requests with configurable
timeouts, auth headers on every call, and classified error handling.

Outcomes are split in two:
  - Business failures (non-2xx answers) are returned as result objects
    with ``success=False`` and the registrar's error text.
  - Faults are raised: RegistrarTransportError when no response arrived,
    RegistrarResponseError when a 2xx body could not be understood.

No retries are attempted here; a failed run is retried by the next
scheduled trigger.
"""

import json
from datetime import date, datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import RegistrarResponseError, RegistrarTransportError
from app.core.logging import get_logger
from app.domain.models import CandidateRecord, DropListResult, OrderRequest, OrderResponse

logger = get_logger(__name__)

DROP_LIST_PATH = "domains/droplist/au"
REGISTER_PATH = "domains/register"
CHECK_PATH = "domains/check/{domain}"

# Accepted spellings of drop-list entry fields
_NAME_KEYS = ("domainName", "DomainName", "domain_name", "domain")
_DATE_KEYS = ("dropDate", "DropDate", "drop_date")
_TLD_KEYS = ("tld", "Tld", "TLD")
_ORDER_ID_KEYS = ("orderId", "OrderId", "order_id")


def _first(entry: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if entry.get(key) not in (None, ""):
            return entry[key]
    return None


def _parse_drop_date(value: Any) -> date:
    """Parse an ISO date or datetime; missing values mean today (UTC)."""
    if value in (None, ""):
        return datetime.now(timezone.utc).date()
    if isinstance(value, datetime):
        return value.date()
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return date.fromisoformat(text[:10])


def parse_drop_list(payload: Any) -> list[CandidateRecord]:
    """
    Convert a drop-list JSON payload into candidate records.

    Accepts a bare JSON array or an object wrapping it under "data" or
    "domains". Entries without a usable name or date are skipped.

    Raises:
        RegistrarResponseError: If the payload is not a list of entries.
    """
    if isinstance(payload, dict):
        data = payload.get("data")
        payload = data if data is not None else payload.get("domains")
    if not isinstance(payload, list):
        raise RegistrarResponseError("fetch_drop_list", "expected a JSON array of domains")

    candidates: list[CandidateRecord] = []
    for entry in payload:
        if not isinstance(entry, dict):
            logger.warning("Skipping malformed drop-list entry: %r", entry)
            continue
        try:
            candidates.append(
                CandidateRecord(
                    domain_name=_first(entry, _NAME_KEYS) or "",
                    drop_date=_parse_drop_date(_first(entry, _DATE_KEYS)),
                    tld=_first(entry, _TLD_KEYS),
                )
            )
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("Skipping invalid drop-list entry %r: %s", entry, exc)
    return candidates


class RegistrarClient:
    """Async client for the drop-list, registration and availability endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        reseller_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._transport = transport
        base = base_url if base_url is not None else settings.registrar_base_url
        # httpx joins relative paths onto the last segment only with a trailing slash
        self._base_url = base if base.endswith("/") else f"{base}/"
        self._api_key = api_key if api_key is not None else settings.registrar_api_key
        self._api_secret = (
            api_secret if api_secret is not None else settings.registrar_api_secret
        )
        self._reseller_id = (
            reseller_id if reseller_id is not None else settings.registrar_reseller_id
        )
        self._timeout = timeout if timeout is not None else settings.http_timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["X-Api-Key"] = self._api_key
        if self._api_secret:
            headers["X-Api-Secret"] = self._api_secret
        if self._reseller_id:
            headers["X-Reseller-Id"] = self._reseller_id
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers(),
            timeout=httpx.Timeout(timeout=self._timeout, connect=10.0),
            transport=self._transport,
        )

    async def fetch_drop_list(self) -> DropListResult:
        """
        Fetch the .au drop list.

        Returns:
            DropListResult with the parsed candidates, or ``success=False``
            and the registrar's error text on a non-2xx answer.

        Raises:
            RegistrarTransportError: Timeout or connection failure.
            RegistrarResponseError: Unparsable body.
        """
        logger.info("Fetching .au drop list from registrar")
        try:
            async with self._client() as client:
                response = await client.get(DROP_LIST_PATH)
        except httpx.TimeoutException as exc:
            raise RegistrarTransportError(
                "fetch_drop_list", f"Request timed out after {self._timeout}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise RegistrarTransportError("fetch_drop_list", str(exc)) from exc

        if not response.is_success:
            logger.error(
                "Failed to fetch drop list. Status: %d, Error: %s",
                response.status_code,
                response.text,
            )
            return DropListResult(
                success=False,
                error_message=f"API returned status code {response.status_code}: {response.text}",
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise RegistrarResponseError(
                "fetch_drop_list", f"Failed to parse API response: {exc}"
            ) from exc

        domains = parse_drop_list(payload)
        logger.info("Successfully fetched %d domains from drop list", len(domains))
        return DropListResult(success=True, domains=domains)

    async def submit_order(self, request: OrderRequest) -> OrderResponse:
        """
        Place a registration order for one domain.

        Returns:
            OrderResponse; ``success=False`` when the registrar refused the
            order (non-2xx, or an explicit ``"success": false`` body).

        Raises:
            RegistrarTransportError: Timeout or connection failure.
            RegistrarResponseError: Unparsable 2xx body.
        """
        domain = request.domain_name
        logger.info("Placing order for domain=%s", domain)
        try:
            async with self._client() as client:
                response = await client.post(REGISTER_PATH, json=request.to_payload())
        except httpx.TimeoutException as exc:
            raise RegistrarTransportError(
                "submit_order", f"Request timed out after {self._timeout}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise RegistrarTransportError("submit_order", str(exc)) from exc

        if not response.is_success:
            logger.error(
                "Failed to order domain=%s. Status: %d, Error: %s",
                domain,
                response.status_code,
                response.text,
            )
            return OrderResponse(
                success=False,
                domain_name=domain,
                error_message=f"API returned status code {response.status_code}: {response.text}",
            )

        if not response.content.strip():
            return OrderResponse(success=True, domain_name=domain)

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise RegistrarResponseError(
                "submit_order", f"Failed to parse API response: {exc}"
            ) from exc
        if not isinstance(body, dict):
            raise RegistrarResponseError("submit_order", "expected a JSON object")

        accepted = body.get("success", body.get("Success", True)) is not False
        order_id = _first(body, _ORDER_ID_KEYS)
        return OrderResponse(
            success=accepted,
            order_id=str(order_id) if order_id is not None else None,
            domain_name=domain,
            status=body.get("status") or body.get("Status"),
            error_message=None if accepted else (
                body.get("errorMessage") or body.get("ErrorMessage") or "Order rejected"
            ),
        )

    async def check_availability(self, domain_name: str) -> bool:
        """
        Ask the registrar whether a domain can be registered.

        Any failure is reported as "not available".
        """
        path = CHECK_PATH.format(domain=quote(domain_name, safe=""))
        try:
            async with self._client() as client:
                response = await client.get(path)
            if not response.is_success:
                logger.warning(
                    "Availability check failed for domain=%s. Status: %d",
                    domain_name,
                    response.status_code,
                )
                return False
            body = response.json()
        except (httpx.HTTPError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error("Error checking availability for domain=%s: %s", domain_name, exc)
            return False

        available = body.get("available") if isinstance(body, dict) else None
        if isinstance(available, bool):
            return available
        return str(available).lower() == "true"
