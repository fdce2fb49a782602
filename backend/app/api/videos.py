import logging
from fastapi import APIRouter, Depends, HTTPException
from app.api.deps import get_coordinator, get_store
from app.models.video import Comment, DEFAULT_AUTHOR
from app.schemas.video import CreateUploadRequest, MetadataUpdate, CommentIn, dump_video, dump_comment
from app.services.lifecycle import VideoLifecycleCoordinator, VideoNotFound, UploadInitError
from app.services.video_store import VideoStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["videos"])

@router.post('/create-upload')
async def create_upload(meta: CreateUploadRequest, coordinator: VideoLifecycleCoordinator = Depends(get_coordinator)):
    """Create a pending video and a direct upload URL at the provider.

    The client PUTs the file straight to `uploadUrl`; status changes arrive
    later through the provider webhook.
    """
    try:
        video, upload = await coordinator.initiate(meta)
    except UploadInitError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "success": True,
        "message": "Upload URL created successfully",
        "data": {
            "videoId": video.id,
            "title": video.title,
            "status": video.status,
            "uploadUrl": upload.url,
            "uploadId": upload.id,
        },
    }

@router.get('/videos')
async def list_videos(store: VideoStore = Depends(get_store)):
    videos = await store.list_newest_first()
    return {"success": True, "data": [dump_video(v) for v in videos], "count": len(videos)}

@router.get('/videos/{video_id}')
async def get_video(video_id: str, coordinator: VideoLifecycleCoordinator = Depends(get_coordinator)):
    try:
        video = await coordinator.get(video_id)
    except VideoNotFound:
        raise HTTPException(status_code=404, detail="Video not found")
    video = await coordinator.reconcile_on_read(video)
    return {"success": True, "data": dump_video(video)}

@router.delete('/videos/{video_id}')
async def delete_video(video_id: str, coordinator: VideoLifecycleCoordinator = Depends(get_coordinator)):
    try:
        await coordinator.retire(video_id)
    except VideoNotFound:
        raise HTTPException(status_code=404, detail="Video not found")
    return {"success": True, "message": "Video deleted successfully"}

@router.patch('/videos/{video_id}/metadata')
async def update_metadata(video_id: str, changes: MetadataUpdate, store: VideoStore = Depends(get_store)):
    video = await store.update_metadata(video_id, changes)
    if video is None:
        raise HTTPException(status_code=404, detail="Video not found")
    return {"success": True, "data": dump_video(video)}

@router.post('/videos/{video_id}/view')
async def record_view(video_id: str, store: VideoStore = Depends(get_store)):
    video = await store.increment_views(video_id)
    if video is None:
        raise HTTPException(status_code=404, detail="Video not found")
    return {"success": True, "data": {"views": video.views, "likes": video.likes, "shares": video.shares}}

@router.post('/videos/{video_id}/comments')
async def add_comment(video_id: str, payload: CommentIn, store: VideoStore = Depends(get_store)):
    video = await store.get(video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    if not (video.settings or {}).get('allowComments', True):
        raise HTTPException(status_code=403, detail="Comments are disabled for this video")
    comment = Comment(
        video_id=video_id,
        content=payload.content,
        author=payload.author.model_dump() if payload.author else dict(DEFAULT_AUTHOR),
    )
    comment = await store.add_comment(comment)
    return {"success": True, "data": dump_comment(comment)}

@router.get('/videos/{video_id}/comments')
async def list_comments(video_id: str, store: VideoStore = Depends(get_store)):
    comments = await store.list_comments(video_id)
    return {"success": True, "data": [dump_comment(c) for c in comments]}
