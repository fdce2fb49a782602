"""Client for the video provider's REST API (Mux Video v1).

The client is built once in the app lifespan and handed to the lifecycle
coordinator through a dependency, so tests can swap in any object that
implements VideoProvider.
"""
import logging
from typing import List, Optional, Protocol
import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from app.core.config import Settings

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Provider unreachable, rejected the call, or answered with an unusable body."""


class UploadSession(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)


class ProviderAsset(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: str
    status: Optional[str] = None
    duration: Optional[float] = None
    playback_ids: List[str] = []

    @property
    def playback_id(self) -> Optional[str]:
        return self.playback_ids[0] if self.playback_ids else None


class VideoProvider(Protocol):
    async def create_upload(self, cors_origin: str, playback_policy: str = 'public') -> UploadSession: ...

    async def get_asset(self, asset_id: str) -> ProviderAsset: ...

    async def delete_asset(self, asset_id: str) -> None: ...

    async def delete_upload(self, upload_id: str) -> None: ...


class MuxClient:
    def __init__(self, http: httpx.AsyncClient, test_assets: bool = False):
        self.http = http
        self.test_assets = test_assets

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> "MuxClient":
        http = httpx.AsyncClient(
            base_url=settings.mux_base_url,
            auth=(settings.mux_token_id, settings.mux_token_secret),
            timeout=settings.mux_timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        return cls(http, test_assets=settings.mux_test_assets)

    async def aclose(self):
        await self.http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            r = await self.http.request(method, path, **kwargs)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(f"{method} {path} failed with HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{method} {path} failed: {e}") from e
        if r.status_code == 204 or not r.content:
            return {}
        try:
            body = r.json()
        except ValueError as e:
            raise ProviderError(f"{method} {path} returned a non-JSON body") from e
        return body if isinstance(body, dict) else {}

    async def create_upload(self, cors_origin: str, playback_policy: str = 'public') -> UploadSession:
        body = {
            "new_asset_settings": {"playback_policy": [playback_policy], "test": self.test_assets},
            "cors_origin": cors_origin,
        }
        data = (await self._request("POST", "/video/v1/uploads", json=body)).get("data") or {}
        try:
            return UploadSession.model_validate(data)
        except ValidationError as e:
            raise ProviderError("Failed to get upload URL from provider") from e

    async def get_asset(self, asset_id: str) -> ProviderAsset:
        data = (await self._request("GET", f"/video/v1/assets/{asset_id}")).get("data") or {}
        try:
            return ProviderAsset(
                id=data.get("id") or asset_id,
                status=data.get("status"),
                duration=data.get("duration"),
                playback_ids=[p["id"] for p in data.get("playback_ids") or [] if p.get("id")],
            )
        except (ValidationError, AttributeError, TypeError) as e:
            raise ProviderError(f"Malformed asset {asset_id} from provider") from e

    async def delete_asset(self, asset_id: str) -> None:
        await self._request("DELETE", f"/video/v1/assets/{asset_id}")

    async def delete_upload(self, upload_id: str) -> None:
        # The provider has no hard delete for direct uploads; cancelling is the removal.
        await self._request("PUT", f"/video/v1/uploads/{upload_id}/cancel")

    async def verify_credentials(self) -> None:
        await self._request("GET", "/video/v1/uploads", params={"limit": 1})
        logger.info("Provider credentials verified")
