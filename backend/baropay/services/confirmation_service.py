"""
Confirmation Relay

Forwards an authorized order to the Toss Payments confirmation API and
consumes the order once Toss accepts it.

Retention policy:
- Success: the order is deleted, so the identifier cannot be confirmed twice
- Failure: the order stays until TTL expiry (retry possible) unless
  delete_on_failure is set
- Overlapping confirmations of one order: only the first reaches Toss;
  the others get ORDER_NOT_FOUND
"""
import base64
import logging
from typing import Any

import httpx

from ..exceptions import OrderNotFoundError, TossConfirmFailedError
from ..models.orders import AuthorizedOrder, ConfirmationResult, redact_order_id
from .order_store import OrderStore

logger = logging.getLogger(__name__)

CONFIRM_PATH = "/v1/payments/confirm"


def basic_auth_header(secret_key: str) -> str:
    """Toss authenticates with the secret key as username and an empty password."""
    token = base64.b64encode(f"{secret_key}:".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {"message": response.text}


class ConfirmationRelay:
    """
    Server-to-server confirmation client.

    The httpx client is owned by the application lifespan; the relay never
    holds the order store lock while a request is in flight.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        store: OrderStore,
        secret_key: str,
        delete_on_failure: bool = False,
    ):
        self.client = client
        self.store = store
        self._authorization = basic_auth_header(secret_key)
        self.delete_on_failure = delete_on_failure

    async def confirm(self, authorized: AuthorizedOrder, payment_key: str) -> ConfirmationResult:
        """
        Confirm the payment with Toss.

        Args:
            authorized: Order returned by OrderVerifier.verify_and_authorize
            payment_key: Toss payment handle from the success redirect

        Returns:
            ConfirmationResult with the processor status code and body

        Raises:
            TossConfirmFailedError: Toss returned a non-2xx status or was unreachable
            OrderNotFoundError: another confirmation holds the order, or it
                was consumed after verification
        """
        order_ref = redact_order_id(authorized.order_id)

        if not self.store.claim(authorized.order_id):
            logger.warning(f"Confirmation already in flight for {order_ref}")
            raise OrderNotFoundError()

        try:
            # Re-check under the claim: a previous confirmation may have
            # consumed the order after this request was verified
            if self.store.get(authorized.order_id) is None:
                raise OrderNotFoundError()
            return await self._confirm(authorized, payment_key, order_ref)
        finally:
            self.store.release(authorized.order_id)

    async def _confirm(
        self,
        authorized: AuthorizedOrder,
        payment_key: str,
        order_ref: str,
    ) -> ConfirmationResult:
        try:
            response = await self.client.post(
                CONFIRM_PATH,
                headers={
                    "Authorization": self._authorization,
                    "Content-Type": "application/json",
                },
                json={
                    "orderId": authorized.order_id,
                    "amount": authorized.amount,
                    "paymentKey": payment_key,
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"Toss confirm request failed for {order_ref}: {e!r}")
            self._handle_failure(authorized)
            raise TossConfirmFailedError(500, {"message": "Unknown error"}) from e

        body = _response_body(response)

        if response.is_success:
            self.store.delete(authorized.order_id)
            logger.info(
                f"Confirmed order {order_ref}: amount={authorized.amount}, "
                f"status={response.status_code}"
            )
            return ConfirmationResult(
                status_code=response.status_code,
                order_id=authorized.order_id,
                amount=authorized.amount,
                body=body,
            )

        logger.warning(
            f"Toss rejected confirmation for {order_ref}: "
            f"status={response.status_code}, body={body}"
        )
        self._handle_failure(authorized)
        raise TossConfirmFailedError(response.status_code, body)

    def _handle_failure(self, authorized: AuthorizedOrder) -> None:
        if self.delete_on_failure:
            self.store.delete(authorized.order_id)
