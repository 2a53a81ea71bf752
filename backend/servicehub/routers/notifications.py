from __future__ import annotations

from fastapi import APIRouter, Depends

from ..domain.schemas import SubscribeRequest
from ..registry import ComponentRegistry
from ..services.subscription_service import SubscriptionService
from .deps import get_registry_dep

router = APIRouter(tags=["notifications"])


@router.post("/subscribe", status_code=202)
def subscribe(body: SubscribeRequest, registry: ComponentRegistry = Depends(get_registry_dep)):
    return registry.get(SubscriptionService).subscribe_email(body.email).to_dict()
