from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import get_settings
from app.db.database import get_db
from app.services.lifecycle import VideoLifecycleCoordinator
from app.services.mux_client import VideoProvider
from app.services.video_store import VideoStore

def get_provider(request: Request) -> VideoProvider:
    provider = getattr(request.app.state, 'provider', None)
    if provider is None:
        raise HTTPException(status_code=503, detail="Video provider is not configured")
    return provider

def get_store(db: AsyncSession = Depends(get_db)) -> VideoStore:
    return VideoStore(db)

def get_coordinator(store: VideoStore = Depends(get_store), provider: VideoProvider = Depends(get_provider)) -> VideoLifecycleCoordinator:
    return VideoLifecycleCoordinator(store, provider, cors_origin=get_settings().frontend_url)
