"""
HTTP client for the remote POS API.

Only the endpoints used by the peripheral layer are wrapped here:

    GET  /printer                     - printers known to the registry
    GET  /printer/{id}/status         - reachability of one printer
    POST /printer/register-devices    - register locally detected printers
    GET  /company                     - company record (theming)

Every failure (connection error, timeout, non-2xx, bad JSON) is raised as
RemoteAPIError so callers have exactly one thing to catch.

Usage:
    client = RemoteAPIClient("https://api.example.com", auth_context, timeout_seconds=30)
    printers = client.list_printers()
    status = client.get_printer_status(printers[0].id)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .exceptions import RemoteAPIError, RemoteTimeoutError
from models.printer import PrinterDescriptor, PrinterRecord
from logging_config import get_logger


class RemoteAPIClient:
    """
    Thin wrapper around a requests.Session bound to the API base URL.

    The bearer token is read from the auth context on every call, so a
    login or logout after construction is picked up without rebuilding
    the client.
    """

    def __init__(
        self,
        base_url: str,
        auth_context=None,
        timeout_seconds: float = 30.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the API client.

        Args:
            base_url: API root, e.g. "https://api.example.com"
            auth_context: Object exposing ``access_token`` (may be None)
            timeout_seconds: Timeout applied to every request
            session: Pre-built requests.Session (tests inject a mock)
            logger: Logger instance (creates default if not provided)

        Raises:
            ValueError: If base_url is empty
        """
        if not base_url:
            raise ValueError("base_url is required")

        self._base_url = base_url.rstrip("/")
        self._auth = auth_context
        self._timeout = max(1.0, float(timeout_seconds))
        self._session = session or requests.Session()
        self._logger = logger or get_logger("core.api_client")

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def list_printers(self) -> List[PrinterRecord]:
        """
        Fetch the printers known to the registry.

        The registry answers either a bare list or an object wrapping it
        under "printers". Registry order is preserved.

        Returns:
            List of PrinterRecord (possibly empty)

        Raises:
            RemoteAPIError: If the request fails
        """
        data = self._request("GET", "/printer")

        if isinstance(data, dict):
            data = data.get("printers") or []
        if not isinstance(data, list):
            raise RemoteAPIError(
                "Unexpected printer list payload", method="GET", path="/printer"
            )

        printers = [PrinterRecord.from_api(item) for item in data if isinstance(item, dict)]
        self._logger.debug(f"Registry returned {len(printers)} printer(s)")
        return printers

    def get_printer_status(self, printer_id: str) -> Dict[str, Any]:
        """
        Probe the reachability of one printer.

        Returns:
            Raw status payload, typically {"connected": bool, "status": str}

        Raises:
            RemoteAPIError: If the request fails
        """
        data = self._request("GET", f"/printer/{printer_id}/status")
        if not isinstance(data, dict):
            return {}
        return data

    def register_devices(
        self,
        computer_id: str,
        printers: List[PrinterDescriptor]
    ) -> Dict[str, Any]:
        """
        Register printers detected on this machine.

        Args:
            computer_id: Stable machine identifier
            printers: Descriptors reported by the desktop host

        Returns:
            Response payload, {"success": bool, "message": str}

        Raises:
            RemoteAPIError: If the request fails
        """
        payload = {
            "computerId": computer_id,
            "printers": [printer.to_dict() for printer in printers],
        }
        data = self._request("POST", "/printer/register-devices", json=payload)
        if not isinstance(data, dict):
            return {"success": False, "message": "Unexpected response payload"}
        return data

    def get_company(self) -> Dict[str, Any]:
        """
        Fetch the current company record.

        Part of the remote API surface the front end relies on; no service
        in this process calls it.
        """
        data = self._request("GET", "/company")
        return data if isinstance(data, dict) else {}

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        token = getattr(self._auth, "access_token", None) if self._auth else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self._base_url}{path}"
        self._logger.debug(f"{method} {url}")

        try:
            response = self._session.request(
                method,
                url,
                headers=self._headers(),
                json=json,
                timeout=self._timeout,
            )
        except requests.Timeout:
            self._logger.warning(f"{method} {path} timed out after {self._timeout:.1f}s")
            raise RemoteTimeoutError(method, path, self._timeout)
        except requests.RequestException as e:
            self._logger.warning(f"{method} {path} failed: {e}")
            raise RemoteAPIError(f"Request failed: {e}", method=method, path=path)

        if response.status_code < 200 or response.status_code >= 300:
            self._logger.warning(f"{method} {path} returned HTTP {response.status_code}")
            raise RemoteAPIError(
                f"HTTP {response.status_code}",
                method=method,
                path=path,
                status_code=response.status_code,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            self._logger.error(f"{method} {path} returned invalid JSON: {e}")
            raise RemoteAPIError(
                f"Invalid JSON in response: {e}", method=method, path=path
            )
