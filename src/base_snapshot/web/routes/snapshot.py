"""
Snapshot endpoints.

POST /api/snapshot always answers 200 once authenticated and validated; the
body's `success` flag and `errors` list carry the outcome.
"""

from fastapi import APIRouter, Depends

from base_snapshot.auth.service import OAuthTokens
from base_snapshot.exceptions import ApiError, InvalidBaseUrlError, LarkError
from base_snapshot.logger import logger
from base_snapshot.snapshot.preview import preview_base
from base_snapshot.snapshot.service import SnapshotService
from base_snapshot.web.deps import ClientFactory, get_client_factory, require_tokens
from base_snapshot.web.schemas import PreviewRequestDTO, SnapshotRequestDTO

router = APIRouter(prefix="/snapshot", tags=["Snapshot"])


@router.post("")
def create_snapshot(
    dto: SnapshotRequestDTO,
    tokens: OAuthTokens = Depends(require_tokens),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    client = client_factory(tokens.access_token)
    result = SnapshotService(client).create_snapshot(dto.to_config())
    return result.to_dict()


@router.post("/preview")
def preview(
    dto: PreviewRequestDTO,
    tokens: OAuthTokens = Depends(require_tokens),
    client_factory: ClientFactory = Depends(get_client_factory),
):
    client = client_factory(tokens.access_token)
    try:
        return preview_base(client, dto.sourceBaseUrl).to_dict()
    except InvalidBaseUrlError as e:
        raise ApiError(400, "Invalid Base URL", str(e)) from e
    except LarkError as e:
        logger.error(f"预览失败: {e}")
        raise ApiError(500, "Failed to preview source base", str(e)) from e
