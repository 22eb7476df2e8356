from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union


class MpesaInitiateRequest(BaseModel):
    order_id: int
    phone_number: str = Field(min_length=9)


class MpesaCallbackItem(BaseModel):
    Name: str
    Value: Optional[Union[str, int, float]] = None


class MpesaCallbackMetadata(BaseModel):
    Item: List[MpesaCallbackItem] = []


class StkCallback(BaseModel):
    MerchantRequestID: Optional[str] = None
    CheckoutRequestID: str
    ResultCode: int
    ResultDesc: Optional[str] = None
    CallbackMetadata: Optional[MpesaCallbackMetadata] = None

    def metadata_value(self, name: str):
        if not self.CallbackMetadata:
            return None
        for item in self.CallbackMetadata.Item:
            if item.Name == name:
                return item.Value
        return None


class MpesaCallbackBody(BaseModel):
    stkCallback: StkCallback


class MpesaCallback(BaseModel):
    Body: MpesaCallbackBody


class PayPalCreateRequest(BaseModel):
    order_id: int


class PayPalCaptureRequest(BaseModel):
    paypal_order_id: str = Field(min_length=1)


class PayPalWebhookEvent(BaseModel):
    id: str
    event_type: str
    resource: Dict[str, Any] = {}

    def related_order_id(self) -> Optional[str]:
        supplementary = self.resource.get("supplementary_data") or {}
        related = supplementary.get("related_ids") or {}
        return related.get("order_id")
