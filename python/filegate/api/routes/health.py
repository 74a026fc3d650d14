"""Liveness endpoint.

Reports which backends this process was configured with. It never calls
them, so a slow upstream cannot fail the check.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from filegate.api.deps import get_gateway
from filegate.gateway import Gateway
from filegate.responses import success_response

router = APIRouter()


@router.get("/health")
def health_check(gateway: Annotated[Gateway, Depends(get_gateway)]) -> dict:
    message_host = gateway.message_host
    return success_response(
        {
            "status": "ok",
            "backends": {
                "metadata_store": gateway.metadata_store is not None,
                "object_store": gateway.object_store is not None,
                "message_host_bot": message_host is not None and message_host.can_resolve,
                "moderation": gateway.moderation is not None,
            },
        }
    )
