from datetime import datetime
from typing import Literal, Optional, List
from pydantic import BaseModel, ConfigDict, Field, computed_field

Visibility = Literal['public', 'private', 'unlisted']


class Author(BaseModel):
    name: str = Field(..., min_length=1)
    id: str = Field(..., min_length=1)
    avatar: Optional[str] = None


class VideoSettingsIn(BaseModel):
    allowComments: Optional[bool] = None
    allowRatings: Optional[bool] = None
    autoplay: Optional[bool] = None


class CreateUploadRequest(BaseModel):
    """Client metadata sent with POST /create-upload. Everything has a default."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    visibility: Optional[Visibility] = None
    author: Optional[Author] = None
    settings: Optional[VideoSettingsIn] = None


class MetadataUpdate(BaseModel):
    # Only these fields are writable after creation; anything else is dropped.
    model_config = ConfigDict(extra='ignore')

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    visibility: Optional[Visibility] = None
    settings: Optional[VideoSettingsIn] = None


class VideoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    title: str
    description: str
    category: str
    tags: List[str]
    visibility: str
    author: dict
    settings: dict
    status: str
    provider_upload_id: Optional[str] = Field(None, serialization_alias='providerUploadId')
    provider_asset_id: Optional[str] = Field(None, serialization_alias='providerAssetId')
    playback_id: Optional[str] = Field(None, serialization_alias='playbackId')
    duration: Optional[float] = None
    views: int = Field(0, exclude=True)
    likes: int = Field(0, exclude=True)
    shares: int = Field(0, exclude=True)
    created_at: datetime = Field(serialization_alias='createdAt')
    updated_at: datetime = Field(serialization_alias='updatedAt')

    @computed_field
    @property
    def metadata(self) -> dict:
        return {"views": self.views, "likes": self.likes, "shares": self.shares}


class CommentIn(BaseModel):
    content: str = Field(..., min_length=1)
    author: Optional[Author] = None


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    video_id: str = Field(serialization_alias='videoId')
    author: dict
    content: str
    likes: int
    created_at: datetime = Field(serialization_alias='createdAt')
    updated_at: datetime = Field(serialization_alias='updatedAt')


def dump_video(video) -> dict:
    return VideoOut.model_validate(video).model_dump(mode='json', by_alias=True)


def dump_comment(comment) -> dict:
    return CommentOut.model_validate(comment).model_dump(mode='json', by_alias=True)
