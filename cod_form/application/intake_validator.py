from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional

from cod_form.application.quota_tracker import QuotaTracker
from cod_form.core.config import settings
from cod_form.domain.exceptions import FormDisabled, QuotaExceeded, ValidationError
from cod_form.domain.models import DeviceType
from cod_form.domain.schemas import CustomerInfo, NewOrder, ProductInfo
from cod_form.interfaces.IStoreRepository import IStoreRepository

REQUIRED_CUSTOMER_FIELDS = ("name", "phone", "address", "city", "pincode")

CENT = Decimal("0.01")
MAX_QUANTITY = 1000
# Largest value a Numeric(10, 2) money column holds
MAX_AMOUNT = Decimal("99999999.99")


@dataclass(frozen=True)
class RequestMeta:
    ip_address: str = ""
    user_agent: str = ""


def classify_device(user_agent: Optional[str]) -> DeviceType:
    ua = (user_agent or "").lower()
    if "mobile" in ua:
        return DeviceType.MOBILE
    if "tablet" in ua:
        return DeviceType.TABLET
    return DeviceType.DESKTOP


def placeholder_email(phone: str, domain: Optional[str] = None) -> str:
    """Shopify wants an email on every order; COD customers often give none."""
    return f"{phone}@cod.{domain or settings.PLATFORM_EMAIL_DOMAIN}"


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, bool)):
        return ""
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    return _text(value) or None


def _positive_price(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip())
        if not price.is_finite():
            return None
        # Rounded here so the stored price and total agree to the cent
        price = price.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    if price <= 0:
        return None
    return price


def _quantity(value: Any) -> int:
    if value is None:
        return 1
    if isinstance(value, bool):
        raise ValidationError("invalid quantity")
    try:
        quantity = int(str(value).strip())
    except ValueError:
        raise ValidationError("invalid quantity")
    if quantity < 1 or quantity > MAX_QUANTITY:
        raise ValidationError("invalid quantity")
    return quantity


class IntakeValidator:
    def __init__(self, store_repo: IStoreRepository, quota: QuotaTracker):
        self.store_repo = store_repo
        self.quota = quota

    def validate(self, body: Dict[str, Any], meta: RequestMeta) -> NewOrder:
        """
        Checks a widget submission and turns it into a NewOrder.

        The store checks run before the payload checks, so a disabled form
        answers "disabled" even for an incomplete submission.
        """
        if not isinstance(body, dict):
            raise ValidationError("invalid request body")

        shop = _text(body.get("shop"))
        if not shop:
            raise ValidationError("shop required")

        store = self.store_repo.find(shop)
        if store is None or not store.form_enabled:
            raise FormDisabled()

        if not self.quota.within_limit(shop):
            raise QuotaExceeded()

        customer = body.get("customer")
        customer = customer if isinstance(customer, dict) else {}
        fields = {name: _text(customer.get(name)) for name in REQUIRED_CUSTOMER_FIELDS}
        if not all(fields.values()):
            raise ValidationError("missing customer fields")

        product = body.get("product")
        product = product if isinstance(product, dict) else {}
        product_id = _text(product.get("id"))
        title = _text(product.get("title"))
        price = _positive_price(product.get("price"))
        if not product_id or not title or price is None:
            raise ValidationError("missing product fields")

        quantity = _quantity(body.get("quantity"))
        if price * quantity > MAX_AMOUNT:
            raise ValidationError("order total too large")

        return NewOrder(
            shop=shop,
            customer=CustomerInfo(
                **fields,
                state=_optional_text(customer.get("state")),
                email=_text(customer.get("email")) or placeholder_email(fields["phone"]),
            ),
            product=ProductInfo(
                id=product_id,
                title=title,
                price=price,
                variant_id=_optional_text(product.get("variantId")),
                image=_optional_text(product.get("image")),
            ),
            quantity=quantity,
            ip_address=meta.ip_address or None,
            user_agent=meta.user_agent or None,
            device_type=classify_device(meta.user_agent),
        )
