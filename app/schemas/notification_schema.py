from pydantic import BaseModel
from typing import Any, Dict, Union


class VapidPublicKey(BaseModel):
    publicKey: str


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscriptionInfo(BaseModel):
    endpoint: str
    keys: SubscriptionKeys


class SubscribeRequest(BaseModel):
    # Browsers send the PushSubscription either as an object or JSON.stringify'd
    subscription: Union[str, Dict[str, Any]]
