"""
Shipping Carrier API Client

Posts packages to a carrier's HTTP endpoint and classifies whatever comes
back. Carrier failures (HTTP errors, HTML outage pages, timeouts, business
rejections) are returned as DispatchOutcome values, never raised.
"""

import asyncio
import json
import logging
from typing import Optional

import httpx

from core.config import CarrierConfig, get_settings

from ..models import CarrierPackagePayload, DispatchOutcome, ExternalCompany
from ..providers import CarrierResponseInterpreter, DEFAULT_INTERPRETER, get_interpreter

logger = logging.getLogger(__name__)


def normalize_token(token: str) -> str:
    """Prefix "Bearer " unless the stored token already has it"""
    token = (token or "").strip()
    if token.lower().startswith("bearer "):
        return token
    return f"Bearer {token}"


def interpret_carrier_response(
    http_status: int,
    reason: str,
    text: str,
    interpreter: CarrierResponseInterpreter = DEFAULT_INTERPRETER,
) -> DispatchOutcome:
    """
    Classify a raw carrier reply.

    Bodies that are not a JSON object (HTML error pages, empty bodies,
    bare strings) are transport failures labelled "HTTP <status> <reason>",
    whatever the status. Parsed objects go to the carrier's interpreter.
    """
    try:
        body = json.loads(text) if text and text.strip() else None
    except ValueError:
        body = None

    if not isinstance(body, dict):
        label = f"HTTP {http_status} {reason or ''}".strip()
        return DispatchOutcome.transport_failure(label, http_status=http_status)

    try:
        return interpreter.interpret(http_status, body)
    except Exception as e:
        logger.error(f"Carrier response interpreter failed: {e}")
        return DispatchOutcome.business_failure(f"Unreadable carrier response: {e}", http_status=http_status)


class CarrierClient:
    """Client for external shipping company APIs"""

    def __init__(
        self,
        config: Optional[CarrierConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_settings().carrier
        self.timeout = httpx.Timeout(
            self.config.timeout_seconds,
            connect=self.config.connect_timeout_seconds,
        )
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=self.timeout)
        logger.info(f"CarrierClient initialized (timeout={self.config.timeout_seconds}s)")

    async def close(self):
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def send_package(self, company: ExternalCompany, payload: CarrierPackagePayload) -> DispatchOutcome:
        """POST the payload to the carrier endpoint"""
        if not company.has_api:
            return DispatchOutcome.skipped()

        headers = {
            "Authorization": normalize_token(company.api_token),
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
        }

        logger.info(
            f"Dispatching package barcode={payload.barcode} to {company.company_name} "
            f"({company.api_endpoint_url})"
        )

        # httpx timeouts are per phase; wait_for bounds the whole exchange
        try:
            response = await asyncio.wait_for(
                self.client.post(
                    company.api_endpoint_url,
                    json=payload.model_dump(),
                    headers=headers,
                    timeout=self.timeout,
                ),
                timeout=self.config.timeout_seconds,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"Carrier {company.company_name} timed out: {e!r}")
            return DispatchOutcome.transport_failure(
                f"Timeout after {self.config.timeout_seconds}s calling {company.company_name}"
            )
        except httpx.HTTPError as e:
            logger.warning(f"Carrier {company.company_name} unreachable: {e!r}")
            return DispatchOutcome.transport_failure(f"Network error: {e}")

        outcome = interpret_carrier_response(
            response.status_code,
            response.reason_phrase,
            response.text,
            get_interpreter(company.company_name),
        )

        if outcome.succeeded:
            logger.info(
                f"Carrier {company.company_name} accepted barcode={payload.barcode} "
                f"external_id={outcome.external_package_id}"
            )
        else:
            logger.warning(
                f"Carrier {company.company_name} rejected barcode={payload.barcode}: "
                f"{outcome.kind.value} {outcome.error}"
            )
        return outcome
