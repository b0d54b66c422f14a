"""CustomerDeduplicator service - create-only customer sync keyed by email."""

import logging
from dataclasses import dataclass
from typing import Any

from app.db.repositories import CustomerRepository
from app.domain.models import CustomerDomain

logger = logging.getLogger(__name__)


@dataclass
class CustomerResolution:
    """Outcome of resolving an order's billing customer."""

    email: str | None
    customer_id: int | None = None
    created: bool = False
    error: str | None = None


class CustomerDeduplicator:
    """
    Ensures a POS customer exists for an order's billing email.

    First write wins: an existing customer is never updated.
    """

    def __init__(self, customer_repo: CustomerRepository):
        """
        Initialize with repository dependency.

        Args:
            customer_repo: Repository for customer operations
        """
        self.customer_repo = customer_repo

    async def ensure_customer(self, billing: dict[str, Any] | None, order_number: Any) -> CustomerResolution:
        """
        Create the billing customer if no customer has that email yet.

        Failures are logged and reported on the result; they never fail the order.
        """
        customer = CustomerDomain.from_billing(billing or {}, order_number)
        if customer is None:
            logger.debug(f"Order #{order_number} has no billing email, skipping customer sync")
            return CustomerResolution(email=None)

        try:
            existing = await self.customer_repo.find_by_email(customer.email)
            if existing is not None:
                logger.debug(f"Customer {customer.email} already exists ({existing.id})")
                return CustomerResolution(email=customer.email, customer_id=existing.id)

            row = await self.customer_repo.create(customer)
            if row is None:
                return CustomerResolution(email=customer.email)

            logger.info(f"Created customer {row.id} for {customer.email} from order #{order_number}")
            return CustomerResolution(email=customer.email, customer_id=row.id, created=True)

        except Exception as e:
            logger.error(f"Error syncing customer {customer.email} from order #{order_number}: {e}")
            return CustomerResolution(email=customer.email, error=str(e))
