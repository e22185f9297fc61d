from __future__ import annotations

from typing import Any, Dict, List

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the alerts review service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")

    def list_cases(self) -> List[Dict[str, Any]]:
        payload = self._request("GET", "/cases")
        return payload if isinstance(payload, list) else []

    def get_case(self, case_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/cases/{case_id}", missing=f"Case {case_id} was not found.")

    def get_snapshots(self, case_id: str) -> List[Dict[str, Any]]:
        payload = self._request(
            "GET", f"/cases/{case_id}/snapshots", missing=f"Case {case_id} was not found."
        )
        return payload if isinstance(payload, list) else []

    def add_note(self, case_id: str, text: str) -> Dict[str, Any]:
        payload = self._request(
            "POST",
            f"/cases/{case_id}/notes",
            json={"text": text},
            missing=f"Case {case_id} was not found.",
        )
        note = payload.get("note")
        if not isinstance(note, dict):
            raise typer.BadParameter("Unexpected response payload when adding a note.")
        return note

    def resolve_case(self, case_id: str, reason: str) -> str:
        payload = self._request(
            "POST",
            f"/cases/{case_id}/resolve",
            json={"resolved_reason": reason},
            missing=f"Case {case_id} was not found.",
        )
        resolved_id = payload.get("case_id")
        if not isinstance(resolved_id, str):
            raise typer.BadParameter("Unexpected response payload when resolving a case.")
        return resolved_id

    def _request(self, method: str, path: str, missing: str | None = None, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
            if missing and response.status_code == 404:
                raise typer.BadParameter(missing)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
