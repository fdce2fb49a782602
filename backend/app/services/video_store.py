from typing import Optional, List
from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.video import Video, Comment, merge_settings, utcnow


class VideoStore:
    """Persistence seam for video and comment records.

    Every write commits immediately: one request or webhook is one short
    read-modify-write against a single record.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, video: Video) -> Video:
        self.db.add(video)
        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def rollback(self) -> None:
        await self.db.rollback()

    async def save(self, video: Video) -> Video:
        await self.db.commit()
        await self.db.refresh(video)
        return video

    async def get(self, video_id: str) -> Optional[Video]:
        return await self.db.get(Video, video_id)

    async def find_by_upload_id(self, upload_id: Optional[str]) -> Optional[Video]:
        if not upload_id:
            return None
        q = await self.db.execute(select(Video).where(Video.provider_upload_id == upload_id).limit(1))
        return q.scalar_one_or_none()

    async def find_by_asset_id(self, asset_id: Optional[str]) -> Optional[Video]:
        if not asset_id:
            return None
        q = await self.db.execute(select(Video).where(Video.provider_asset_id == asset_id).limit(1))
        return q.scalar_one_or_none()

    async def list_newest_first(self) -> List[Video]:
        q = await self.db.execute(select(Video).order_by(Video.created_at.desc(), Video.id))
        return list(q.scalars().all())

    async def delete(self, video_id: str) -> None:
        await self.db.execute(delete(Comment).where(Comment.video_id == video_id))
        video = await self.get(video_id)
        if video is not None:
            await self.db.delete(video)
        await self.db.commit()

    async def increment_views(self, video_id: str) -> Optional[Video]:
        await self.db.execute(update(Video).where(Video.id == video_id).values(views=Video.views + 1))
        await self.db.commit()
        video = await self.get(video_id)
        if video is not None:
            await self.db.refresh(video)
        return video

    async def add_comment(self, comment: Comment) -> Comment:
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def list_comments(self, video_id: str) -> List[Comment]:
        q = await self.db.execute(
            select(Comment).where(Comment.video_id == video_id).order_by(Comment.created_at.desc(), Comment.id)
        )
        return list(q.scalars().all())

    async def update_metadata(self, video_id: str, changes) -> Optional[Video]:
        video = await self.get(video_id)
        if video is None:
            return None
        fields = changes.model_dump(exclude_unset=True, exclude={'settings'})
        for key, value in fields.items():
            if value is not None:
                setattr(video, key, value)
        if changes.settings is not None:
            video.settings = merge_settings(video.settings, changes.settings)
        video.updated_at = utcnow()
        return await self.save(video)
