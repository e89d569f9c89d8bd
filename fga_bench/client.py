"""
HTTP client for the OpenFGA API.

Wraps the handful of endpoints the benchmarks need -- store creation,
model upload, tuple writes/deletes, checks -- behind small methods that
either return a result or raise.  The benchmarks never retry, so the
client does not either: every non-2xx answer becomes a
:class:`~fga_bench.errors.ServiceError` and every transport failure a
:class:`~fga_bench.errors.TransportError`.

Key Concepts Demonstrated:
- One ``requests.Session`` per client for connection pooling across
  worker threads
- Mapping HTTP status and ``requests`` exceptions to a typed taxonomy
- Store and model ids held on the client instance, never in globals
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import requests

from fga_bench.errors import ServiceError, TransportError
from fga_bench.tuples import RelationshipTuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteResult:
    status_code: int
    raw: str


@dataclass(frozen=True)
class CheckResult:
    status_code: int
    allowed: bool
    raw: str


def _tuple_keys(tuples: Iterable[RelationshipTuple]) -> list[dict[str, str]]:
    return [t.to_key() for t in tuples]


class FgaClient:
    """
    Minimal OpenFGA client bound to one store and one authorization model.

    Attributes:
        api_url: Base URL of the OpenFGA HTTP API.
        store_id: Store all writes and checks go to; set by
            :meth:`create_store` or passed in directly.
        authorization_model_id: Model pinned on writes and checks; set by
            :meth:`write_authorization_model`.
        timeout: Seconds to wait for each response.
    """

    def __init__(
        self,
        api_url: str,
        *,
        api_token: str | None = None,
        timeout: float = 10,
        store_id: str | None = None,
        authorization_model_id: str | None = None,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.store_id = store_id
        self.authorization_model_id = authorization_model_id
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        if api_token:
            self.session.headers["Authorization"] = f"Bearer {api_token}"

    # =====================================================================
    # Transport
    # =====================================================================

    def _store_path(self, suffix: str = "") -> str:
        if not self.store_id:
            raise ServiceError("resolve store", None, message="No store id has been set on the client")
        return f"/stores/{self.store_id}{suffix}"

    def _request(self, operation: str, method: str, path: str, payload: dict[str, Any] | None = None) -> tuple[int, Any, str]:
        """
        Send one request and return ``(status_code, json_body, raw_text)``.

        Raises:
            TransportError: If no response was received.
            ServiceError: If the response status is not 2xx.
        """
        url = f"{self.api_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.Timeout as exc:
            raise TransportError(operation, f"timed out after {self.timeout}s") from exc
        except requests.RequestException as exc:
            raise TransportError(operation, str(exc)) from exc

        raw = response.text
        try:
            body = response.json() if raw else {}
        except ValueError:
            body = {}

        if not 200 <= response.status_code < 300:
            raise ServiceError.from_body(operation, response.status_code, body, raw)
        return response.status_code, body, raw

    # =====================================================================
    # Bootstrap
    # =====================================================================

    def create_store(self, name: str) -> str:
        """Create a store, bind this client to it and return its id."""
        _, body, raw = self._request("create store", "POST", "/stores", {"name": name})
        store_id = body.get("id") if isinstance(body, dict) else None
        if not store_id:
            raise ServiceError("create store", None, message="Response missing store id", raw=raw)

        self.store_id = store_id
        logger.info("Created store %s (%s)", name, store_id)
        return store_id

    def write_authorization_model(self, model: dict[str, Any]) -> str:
        """Upload ``model`` to the bound store and pin this client to it."""
        _, body, raw = self._request(
            "write authorization model",
            "POST",
            self._store_path("/authorization-models"),
            model,
        )
        model_id = body.get("authorization_model_id") if isinstance(body, dict) else None
        if not model_id:
            raise ServiceError(
                "write authorization model", None, message="Response missing authorization_model_id", raw=raw
            )

        self.authorization_model_id = model_id
        logger.info("Wrote authorization model %s", model_id)
        return model_id

    def delete_store(self) -> None:
        """Delete the bound store and everything in it."""
        self._request("delete store", "DELETE", self._store_path())
        logger.info("Deleted store %s", self.store_id)
        self.store_id = None
        self.authorization_model_id = None

    # =====================================================================
    # Tuples
    # =====================================================================

    def write(
        self,
        writes: Iterable[RelationshipTuple] = (),
        deletes: Iterable[RelationshipTuple] = (),
    ) -> WriteResult:
        """
        Write and/or delete tuples in one atomic request.

        Args:
            writes: Tuples to create.
            deletes: Tuples to remove.

        Returns:
            The status code and raw body of the successful response.
        """
        payload: dict[str, Any] = {}
        write_keys = _tuple_keys(writes)
        delete_keys = _tuple_keys(deletes)
        if write_keys:
            payload["writes"] = {"tuple_keys": write_keys}
        if delete_keys:
            payload["deletes"] = {"tuple_keys": delete_keys}
        if self.authorization_model_id:
            payload["authorization_model_id"] = self.authorization_model_id

        operation = "delete relationship" if delete_keys and not write_keys else "write relationship"
        status_code, _, raw = self._request(operation, "POST", self._store_path("/write"), payload)
        return WriteResult(status_code=status_code, raw=raw)

    def check(self, user: str, relation: str, obj: str) -> CheckResult:
        """Ask whether ``user`` has ``relation`` on ``obj``."""
        payload: dict[str, Any] = {
            "tuple_key": {"user": user, "relation": relation, "object": obj},
        }
        if self.authorization_model_id:
            payload["authorization_model_id"] = self.authorization_model_id

        status_code, body, raw = self._request("lookup relationship", "POST", self._store_path("/check"), payload)
        allowed = bool(body.get("allowed")) if isinstance(body, dict) else False
        return CheckResult(status_code=status_code, allowed=allowed, raw=raw)

    def check_tuple(self, relationship: RelationshipTuple) -> CheckResult:
        return self.check(relationship.user, relationship.relation, relationship.object)

    def close(self) -> None:
        self.session.close()
