"""Reference data HTTP client for service line descriptions and master service lines"""

import httpx
from typing import Dict, Iterable
from recoverability_gateway.domain.models import ServiceLineDetails
from recoverability_gateway.domain.exceptions import ReferenceDataError
from recoverability_gateway.config import settings


class ServiceLineClient:
    """Client for the external service line reference API"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.reference_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _get(self, path: str, params: Dict[str, str] | None = None) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(f"{self.base_url}{path}", params=params)
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException as e:
                raise ReferenceDataError(f"Reference API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ReferenceDataError(f"Reference API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise ReferenceDataError(f"Reference API unreachable: {e}") from e
            except ValueError as e:
                raise ReferenceDataError(f"Invalid reference API response: {e}") from e

    async def get_service_lines(self, codes: Iterable[str]) -> Dict[str, ServiceLineDetails]:
        """
        Fetch descriptions and master mapping for the given service line codes.

        Raises:
            ReferenceDataError: On timeout, HTTP errors, or invalid response
        """
        codes = sorted(set(codes))
        if not codes:
            return {}

        data = await self._get("/service-lines", params={"codes": ",".join(codes)})
        try:
            return {
                item["code"]: ServiceLineDetails(
                    code=item["code"],
                    description=item.get("description") or "",
                    sub_group_code=item.get("sub_group_code") or "",
                    sub_group_desc=item.get("sub_group_desc") or "",
                    master_code=item.get("master_code") or "",
                )
                for item in data.get("service_lines", [])
            }
        except (KeyError, TypeError, AttributeError) as e:
            raise ReferenceDataError(f"Invalid service line data: {e}") from e

    async def get_master_service_lines(self) -> Dict[str, str]:
        """
        Fetch active master service line names keyed by code.

        Raises:
            ReferenceDataError: On timeout, HTTP errors, or invalid response
        """
        data = await self._get("/service-lines/master", params={"active": "true"})
        try:
            return {item["code"]: item.get("name") or "" for item in data.get("master_service_lines", [])}
        except (KeyError, TypeError, AttributeError) as e:
            raise ReferenceDataError(f"Invalid master service line data: {e}") from e
