from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from cod_form.domain.models import DeviceType, OrderStatus


class CustomerInfo(BaseModel):
    name: str
    phone: str
    address: str
    city: str
    pincode: str
    state: Optional[str] = None
    email: str


class ProductInfo(BaseModel):
    id: str
    title: str
    price: Decimal
    variant_id: Optional[str] = None
    image: Optional[str] = None


class NewOrder(BaseModel):
    """A validated submission, ready to be saved."""

    shop: str
    customer: CustomerInfo
    product: ProductInfo
    quantity: int = 1
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_type: DeviceType = DeviceType.DESKTOP

    @property
    def total_amount(self) -> Decimal:
        return self.product.price * self.quantity


class OrderStats(BaseModel):
    total: int = 0
    pending: int = 0
    confirmed: int = 0
    delivered: int = 0
    rto: int = 0
    total_revenue: float = 0.0

    def to_dict(self) -> dict:
        return {
            "totalOrders": self.total,
            "pendingOrders": self.pending,
            "confirmedOrders": self.confirmed,
            "deliveredOrders": self.delivered,
            "rtoOrders": self.rto,
            "totalRevenue": self.total_revenue,
        }


class PublicSettings(BaseModel):
    """What the storefront widget is allowed to see about a store."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    form_enabled: bool = Field(serialization_alias="formEnabled")
    button_text: Optional[str] = Field(default=None, serialization_alias="buttonText")
    button_color: Optional[str] = Field(default=None, serialization_alias="buttonColor")
    button_text_color: Optional[str] = Field(default=None, serialization_alias="buttonTextColor")
    show_name: Optional[bool] = Field(default=None, serialization_alias="showName")
    show_phone: Optional[bool] = Field(default=None, serialization_alias="showPhone")
    show_address: Optional[bool] = Field(default=None, serialization_alias="showAddress")
    show_city: Optional[bool] = Field(default=None, serialization_alias="showCity")
    show_pincode: Optional[bool] = Field(default=None, serialization_alias="showPincode")
    show_state: Optional[bool] = Field(default=None, serialization_alias="showState")
    label_name: Optional[str] = Field(default=None, serialization_alias="labelName")
    label_phone: Optional[str] = Field(default=None, serialization_alias="labelPhone")
    label_address: Optional[str] = Field(default=None, serialization_alias="labelAddress")
    label_city: Optional[str] = Field(default=None, serialization_alias="labelCity")
    label_pincode: Optional[str] = Field(default=None, serialization_alias="labelPincode")
    label_state: Optional[str] = Field(default=None, serialization_alias="labelState")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class SettingsUpdate(BaseModel):
    """Partial update from the merchant admin; unset fields are left alone."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    form_enabled: Optional[bool] = Field(default=None, alias="formEnabled")
    button_text: Optional[str] = Field(default=None, alias="buttonText")
    button_color: Optional[str] = Field(default=None, alias="buttonColor")
    button_text_color: Optional[str] = Field(default=None, alias="buttonTextColor")
    show_name: Optional[bool] = Field(default=None, alias="showName")
    show_phone: Optional[bool] = Field(default=None, alias="showPhone")
    show_address: Optional[bool] = Field(default=None, alias="showAddress")
    show_city: Optional[bool] = Field(default=None, alias="showCity")
    show_pincode: Optional[bool] = Field(default=None, alias="showPincode")
    show_state: Optional[bool] = Field(default=None, alias="showState")
    label_name: Optional[str] = Field(default=None, alias="labelName")
    label_phone: Optional[str] = Field(default=None, alias="labelPhone")
    label_address: Optional[str] = Field(default=None, alias="labelAddress")
    label_city: Optional[str] = Field(default=None, alias="labelCity")
    label_pincode: Optional[str] = Field(default=None, alias="labelPincode")
    label_state: Optional[str] = Field(default=None, alias="labelState")

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class StatusUpdate(BaseModel):
    status: OrderStatus
