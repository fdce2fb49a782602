"""Provider webhook payloads.

Only three event kinds drive the video lifecycle. Each is validated into its
own model before reaching the coordinator; anything else is ignored.
"""
from typing import Annotated, Any, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

ASSET_CREATED = 'video.asset.created'
ASSET_READY = 'video.asset.ready'
ASSET_ERRORED = 'video.asset.errored'


class MalformedEvent(ValueError):
    """Webhook body cannot be turned into a recognized event."""


class _Data(BaseModel):
    model_config = ConfigDict(extra='ignore')


class PlaybackRef(_Data):
    id: str = Field(..., min_length=1)
    policy: Optional[str] = None


class AssetCreatedData(_Data):
    id: str = Field(..., min_length=1)
    # absent for assets that did not come from a direct upload
    upload_id: Optional[str] = None
    status: Optional[str] = None


class AssetReadyData(_Data):
    id: str = Field(..., min_length=1)
    upload_id: Optional[str] = None
    status: Optional[str] = None
    duration: float = Field(..., ge=0)
    playback_ids: List[PlaybackRef] = Field(..., min_length=1)


class AssetErroredData(_Data):
    id: str = Field(..., min_length=1)
    upload_id: Optional[str] = None
    status: Optional[str] = None
    errors: Any = None


class AssetCreated(_Data):
    type: Literal['video.asset.created']
    data: AssetCreatedData

    @property
    def asset_id(self) -> str:
        return self.data.id

    @property
    def upload_id(self) -> Optional[str]:
        return self.data.upload_id


class AssetReady(_Data):
    type: Literal['video.asset.ready']
    data: AssetReadyData

    @property
    def asset_id(self) -> str:
        return self.data.id

    @property
    def upload_id(self) -> Optional[str]:
        return self.data.upload_id

    @property
    def playback_id(self) -> str:
        # Only the first rendition is surfaced
        return self.data.playback_ids[0].id


class AssetErrored(_Data):
    type: Literal['video.asset.errored']
    data: AssetErroredData

    @property
    def asset_id(self) -> str:
        return self.data.id

    @property
    def upload_id(self) -> Optional[str]:
        return self.data.upload_id


ProviderEvent = Annotated[Union[AssetCreated, AssetReady, AssetErrored], Field(discriminator='type')]
_event_adapter = TypeAdapter(ProviderEvent)
KNOWN_EVENT_TYPES = {ASSET_CREATED, ASSET_READY, ASSET_ERRORED}


def parse_provider_event(payload: Any) -> Optional[Union[AssetCreated, AssetReady, AssetErrored]]:
    """Validate a decoded webhook body.

    Returns None for well-formed events of a kind we do not handle and raises
    MalformedEvent when the body is not an event at all or a recognized event
    lacks the fields its handler needs.
    """
    if not isinstance(payload, dict):
        raise MalformedEvent('Webhook body must be a JSON object')
    event_type = payload.get('type')
    if not isinstance(event_type, str) or not event_type:
        raise MalformedEvent('Webhook body has no event type')
    if event_type not in KNOWN_EVENT_TYPES:
        return None
    try:
        return _event_adapter.validate_python(payload)
    except ValidationError as e:
        raise MalformedEvent(f"Invalid {event_type} payload: {e.error_count()} error(s)") from e
