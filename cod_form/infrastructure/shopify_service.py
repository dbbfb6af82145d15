import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from cod_form.core.config import settings
from cod_form.domain.exceptions import UpstreamSyncError
from cod_form.interfaces.IUpstreamPlatform import (
    CompletedOrderResult,
    DraftOrderResult,
    IUpstreamPlatform,
    UserError,
)

logger = logging.getLogger(__name__)

# A read only returns once its whole chunk has arrived, so read byte by byte
# to check the deadline while a response trickles in. Bodies are small.
READ_CHUNK_SIZE = 1

DRAFT_ORDER_CREATE = """
mutation draftOrderCreate($input: DraftOrderInput!) {
  draftOrderCreate(input: $input) {
    draftOrder {
      id
      name
    }
    userErrors {
      field
      message
    }
  }
}
"""

DRAFT_ORDER_COMPLETE = """
mutation draftOrderComplete($id: ID!, $paymentPending: Boolean) {
  draftOrderComplete(id: $id, paymentPending: $paymentPending) {
    draftOrder {
      order {
        id
        name
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""


class ShopifyAdminClient(IUpstreamPlatform):
    """
    A service class for the Shopify Admin GraphQL API.

    Every call is bounded by a total deadline of `timeout` seconds, not just
    per socket read, so a slow-dripping response can't hold a request open.
    Timeouts and HTTP errors surface as exceptions for the caller to handle.
    """

    def __init__(self, api_version: Optional[str] = None, timeout: Optional[float] = None, session=None):
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.timeout = timeout if timeout is not None else settings.SHOPIFY_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def create_draft_order(self, shop: str, access_token: str, draft_input: Dict[str, Any]) -> DraftOrderResult:
        payload = self._graphql(shop, access_token, DRAFT_ORDER_CREATE, {"input": draft_input})
        result = (payload.get("data") or {}).get("draftOrderCreate") or {}
        draft = result.get("draftOrder") or {}
        return DraftOrderResult(
            draft_id=draft.get("id"),
            name=draft.get("name"),
            user_errors=_user_errors(result),
        )

    def complete_draft_order(
        self, shop: str, access_token: str, draft_id: str, payment_pending: bool = True
    ) -> CompletedOrderResult:
        payload = self._graphql(
            shop,
            access_token,
            DRAFT_ORDER_COMPLETE,
            {"id": draft_id, "paymentPending": payment_pending},
        )
        result = (payload.get("data") or {}).get("draftOrderComplete") or {}
        order = (result.get("draftOrder") or {}).get("order") or {}
        return CompletedOrderResult(
            order_id=order.get("id"),
            order_name=order.get("name"),
            user_errors=_user_errors(result),
        )

    def _graphql(self, shop: str, access_token: str, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        url = f"https://{shop}/admin/api/{self.api_version}/graphql.json"
        headers = {
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json",
        }
        deadline = time.monotonic() + self.timeout
        response = self.session.post(
            url,
            headers=headers,
            json={"query": query, "variables": variables},
            timeout=self.timeout,
            stream=True,
        )
        try:
            body = self._read_body(response, deadline)
        finally:
            response.close()

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error(f"Shopify API Error: {response.status_code} - {body[:500]!r}")
            raise UpstreamSyncError(f"Shopify returned HTTP {response.status_code}") from e

        payload = json.loads(body)
        if not isinstance(payload, dict):
            raise UpstreamSyncError("Unexpected Shopify response")
        if payload.get("errors"):
            # Top-level GraphQL errors (throttling, bad query); data may still be partial.
            logger.warning(f"⚠️ Shopify GraphQL errors for {shop}: {payload['errors']}")
        return payload

    def _read_body(self, response, deadline: float) -> bytes:
        chunks = []
        for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
            if time.monotonic() > deadline:
                logger.error(f"⏱️ Shopify response exceeded {self.timeout}s, giving up")
                raise UpstreamSyncError(f"Shopify did not answer within {self.timeout}s")
            chunks.append(chunk)
        return b"".join(chunks)


def _user_errors(result: Dict[str, Any]) -> List[UserError]:
    return [
        UserError(field=error.get("field"), message=error.get("message", ""))
        for error in result.get("userErrors") or []
    ]
