"""Management routes.

Failures raised as ApiError are rendered as { "success": false, "error": ... }
by the exception handlers for this path.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from filegate.api.deps import get_gateway
from filegate.gateway import Gateway
from filegate.services import deletion as deletion_service

router = APIRouter()


@router.api_route("/api/manage/delete/{file_id:path}", methods=["DELETE", "POST"])
def delete_file(
    file_id: str,
    gateway: Annotated[Gateway, Depends(get_gateway)],
) -> dict:
    """Delete a file from its backend, then its metadata record.

    The path parameter arrives percent-decoded once by the router.
    Metadata is kept when the backend refuses the delete, so a retry can
    finish the job.
    """
    result = deletion_service.delete_file(gateway, file_id)
    return result.to_dict()
