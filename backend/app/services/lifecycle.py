"""Video lifecycle coordinator.

Owns the status of a video record. Client actions (create upload, delete) and
provider webhooks both go through here, and reads may lazily pull the
provider's view of an asset to repair missed webhooks.

    awaiting_upload --asset.created--> processing --asset.ready----> ready
                                                  \\--asset.errored--> error

Events arrive at least once and in any order. Records are resolved by the
provider asset id first and the upload id second, so a ready/errored event
that beats its created event still lands on the right record.
"""
import enum
import logging
from typing import Optional, Tuple
from app.models.video import Video, VideoStatus, DEFAULT_AUTHOR, merge_settings
from app.schemas.video import CreateUploadRequest
from app.schemas.webhook import AssetCreated, AssetReady, AssetErrored
from app.services.mux_client import UploadSession, VideoProvider
from app.services.video_store import VideoStore

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLE = 'Untitled Video'


class VideoNotFound(LookupError):
    pass


class UploadInitError(RuntimeError):
    """Upload session could not be created; the pending record was rolled back."""


class EventOutcome(str, enum.Enum):
    APPLIED = 'applied'
    IGNORED = 'ignored'
    MISSED = 'missed'


class VideoLifecycleCoordinator:
    def __init__(self, store: VideoStore, provider: VideoProvider, cors_origin: str = '*'):
        self.store = store
        self.provider = provider
        self.cors_origin = cors_origin

    async def initiate(self, meta: CreateUploadRequest) -> Tuple[Video, UploadSession]:
        video = Video(
            title=meta.title or PLACEHOLDER_TITLE,
            description=meta.description or '',
            category=meta.category or 'Uncategorized',
            tags=list(meta.tags or []),
            visibility=meta.visibility or 'public',
            author=meta.author.model_dump() if meta.author else dict(DEFAULT_AUTHOR),
            settings=merge_settings(None, meta.settings),
            status=VideoStatus.AWAITING_UPLOAD.value,
        )
        video = await self.store.add(video)
        video_id = video.id
        logger.info("Video %s saved, requesting upload session", video_id)
        try:
            upload = await self.provider.create_upload(cors_origin=self.cors_origin, playback_policy='public')
            video.provider_upload_id = upload.id
            video = await self.store.save(video)
        except Exception as e:
            logger.error("Create upload failed for video %s: %s", video_id, e)
            await self.store.rollback()
            await self.store.delete(video_id)
            raise UploadInitError(str(e) or 'Failed to create upload URL') from e
        return video, upload

    async def _resolve(self, asset_id: Optional[str], upload_id: Optional[str]) -> Optional[Video]:
        video = await self.store.find_by_asset_id(asset_id)
        if video is None and upload_id:
            video = await self.store.find_by_upload_id(upload_id)
        return video

    def _bound_elsewhere(self, video: Video, asset_id: str) -> bool:
        if video.provider_asset_id and video.provider_asset_id != asset_id:
            logger.warning("Video %s is bound to asset %s, ignoring event for %s",
                           video.id, video.provider_asset_id, asset_id)
            return True
        return False

    def _claim_asset(self, video: Video, asset_id: str):
        if not video.provider_asset_id:
            video.provider_asset_id = asset_id
        elif video.provider_asset_id != asset_id:
            logger.warning("Video %s already bound to asset %s, ignoring %s",
                           video.id, video.provider_asset_id, asset_id)

    async def handle_provider_event(self, event) -> EventOutcome:
        if isinstance(event, AssetCreated):
            return await self._on_created(event)
        if isinstance(event, AssetReady):
            return await self._on_ready(event)
        if isinstance(event, AssetErrored):
            return await self._on_errored(event)
        return EventOutcome.IGNORED

    async def _on_created(self, event: AssetCreated) -> EventOutcome:
        if not event.upload_id:
            logger.error("Asset %s was not created from a direct upload", event.asset_id)
            return EventOutcome.MISSED
        video = await self.store.find_by_upload_id(event.upload_id)
        if video is None:
            logger.error("No video found for upload %s", event.upload_id)
            return EventOutcome.MISSED
        self._claim_asset(video, event.asset_id)
        # A late created event must not pull a finished video back to processing
        if not video.is_terminal:
            video.status = VideoStatus.PROCESSING.value
        await self.store.save(video)
        logger.info("Video %s asset %s created, status %s", video.id, event.asset_id, video.status)
        return EventOutcome.APPLIED

    async def _on_ready(self, event: AssetReady) -> EventOutcome:
        video = await self._resolve(event.asset_id, event.upload_id)
        if video is None:
            logger.error("No video found for asset %s or upload %s", event.asset_id, event.upload_id)
            return EventOutcome.MISSED
        if video.status == VideoStatus.ERROR.value:
            logger.warning("Video %s already errored, ignoring ready event", video.id)
            return EventOutcome.IGNORED
        if self._bound_elsewhere(video, event.asset_id):
            return EventOutcome.IGNORED
        self._claim_asset(video, event.asset_id)
        video.status = VideoStatus.READY.value
        video.duration = event.data.duration
        video.playback_id = event.playback_id
        await self.store.save(video)
        logger.info("Video %s is ready for streaming", video.id)
        return EventOutcome.APPLIED

    async def _on_errored(self, event: AssetErrored) -> EventOutcome:
        video = await self._resolve(event.asset_id, event.upload_id)
        if video is None:
            logger.info("Dropping errored event for unknown asset %s", event.asset_id)
            return EventOutcome.MISSED
        if video.status == VideoStatus.READY.value:
            logger.warning("Video %s already ready, ignoring errored event", video.id)
            return EventOutcome.IGNORED
        if self._bound_elsewhere(video, event.asset_id):
            return EventOutcome.IGNORED
        self._claim_asset(video, event.asset_id)
        video.status = VideoStatus.ERROR.value
        video.duration = None
        video.playback_id = None
        await self.store.save(video)
        logger.error("Video %s processing failed: %s", video.id, event.data.errors)
        return EventOutcome.APPLIED

    async def get(self, video_id: str) -> Video:
        video = await self.store.get(video_id)
        if video is None:
            raise VideoNotFound(video_id)
        return video

    async def reconcile_on_read(self, video: Video) -> Video:
        if not video.provider_asset_id:
            return video
        try:
            asset = await self.provider.get_asset(video.provider_asset_id)
        except Exception as e:
            logger.warning("Could not fetch provider asset %s: %s", video.provider_asset_id, e)
            return video

        ready_playback = asset.playback_id or video.playback_id
        ready_duration = asset.duration if asset.duration is not None else video.duration
        # ready needs both playback id and duration; otherwise keep waiting for the webhook
        if (asset.status == 'ready' and ready_playback and ready_duration is not None
                and video.status != VideoStatus.ERROR.value):
            status = VideoStatus.READY.value
        elif asset.status == 'errored' and video.status != VideoStatus.READY.value:
            status = VideoStatus.ERROR.value
        elif video.is_terminal:
            status = video.status
        else:
            status = VideoStatus.PROCESSING.value

        if status == VideoStatus.READY.value:
            duration = ready_duration
            playback_id = ready_playback
        else:
            duration, playback_id = None, None

        if (status, duration, playback_id) == (video.status, video.duration, video.playback_id):
            return video
        video.status, video.duration, video.playback_id = status, duration, playback_id
        logger.info("Video %s reconciled with provider: status %s", video.id, status)
        return await self.store.save(video)

    async def retire(self, video_id: str) -> None:
        video = await self.get(video_id)
        if video.provider_asset_id:
            try:
                await self.provider.delete_asset(video.provider_asset_id)
                logger.info("Deleted provider asset %s", video.provider_asset_id)
            except Exception as e:
                logger.error("Failed to delete provider asset %s: %s", video.provider_asset_id, e)
        if video.provider_upload_id:
            try:
                await self.provider.delete_upload(video.provider_upload_id)
                logger.info("Deleted provider upload %s", video.provider_upload_id)
            except Exception as e:
                logger.error("Failed to delete provider upload %s: %s", video.provider_upload_id, e)
        await self.store.delete(video_id)
        logger.info("Deleted video %s", video_id)
