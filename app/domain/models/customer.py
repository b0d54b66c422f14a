"""
Customer domain model.

Represents a POS customer derived from a WooCommerce order's billing block.
"""

from dataclasses import dataclass
from typing import Any

WOOCOMMERCE_SOURCE = "woocommerce"


def normalize_email(email: Any) -> str | None:
    """
    Normalize an email for deduplication.

    Returns:
        The trimmed, lower-cased email, or None when missing or blank
    """
    if not isinstance(email, str):
        return None
    normalized = email.strip().lower()
    return normalized or None


@dataclass
class CustomerDomain:
    """
    Domain model representing a customer to be created in the POS.

    Attributes:
        email: Normalized email address (deduplication key)
        name: Full name, "first last"
        phone: Phone number
        address: Street address
        city: City
        state: State or province
        zip_code: Postal code
        country: Country code
        source: Provenance tag
        notes: Free-form notes naming the originating order
    """

    email: str
    name: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""
    source: str = WOOCOMMERCE_SOURCE
    notes: str = ""
    id: int | None = None

    def __post_init__(self) -> None:
        """Validate customer data after initialization."""
        if not self.email:
            raise ValueError("Email is required for customers")

    @classmethod
    def from_billing(cls, billing: dict[str, Any], order_number: Any) -> "CustomerDomain | None":
        """
        Build a customer from an order's billing block.

        Returns:
            CustomerDomain, or None when the billing block carries no email
        """
        email = normalize_email((billing or {}).get("email"))
        if not email:
            return None

        first_name = billing.get("first_name") or ""
        last_name = billing.get("last_name") or ""

        return cls(
            email=email,
            name=f"{first_name} {last_name}".strip(),
            phone=billing.get("phone") or "",
            address=billing.get("address_1") or "",
            city=billing.get("city") or "",
            state=billing.get("state") or "",
            zip_code=billing.get("postcode") or "",
            country=billing.get("country") or "",
            source=WOOCOMMERCE_SOURCE,
            notes=f"Synced from WooCommerce order #{order_number}",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert customer to dictionary for persistence."""
        return {
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
            "source": self.source,
            "notes": self.notes,
        }
