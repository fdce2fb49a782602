import os, pytest
from httpx import AsyncClient, ASGITransport

os.environ.setdefault('DATABASE_URL', 'sqlite+aiosqlite:///./test_videos.db')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('FRONTEND_URL', 'http://localhost:5173')

from app.main import app  # after env setup
from app.api.deps import get_provider
from app.db.database import Base, engine, SessionLocal
from app.services.lifecycle import VideoLifecycleCoordinator
from app.services.mux_client import ProviderAsset, ProviderError, UploadSession
from app.services.video_store import VideoStore


class FakeProvider:
    """In-memory stand-in for the provider API. Flip the fail_* flags to simulate outages."""

    def __init__(self):
        self.uploads = {}
        self.assets = {}
        self.deleted_assets = []
        self.deleted_uploads = []
        self.cors_origins = []
        self.fail_create = False
        self.fail_get = False
        self.fail_delete = False
        self._n = 0

    async def create_upload(self, cors_origin, playback_policy='public'):
        if self.fail_create:
            raise ProviderError("provider unavailable")
        self._n += 1
        upload_id = f"up_{self._n}"
        self.uploads[upload_id] = playback_policy
        self.cors_origins.append(cors_origin)
        return UploadSession(id=upload_id, url=f"https://storage.example/upload/{upload_id}")

    async def get_asset(self, asset_id):
        if self.fail_get:
            raise ProviderError("provider unavailable")
        if asset_id not in self.assets:
            raise ProviderError(f"asset {asset_id} not found")
        return self.assets[asset_id]

    async def delete_asset(self, asset_id):
        if self.fail_delete:
            raise ProviderError("asset delete failed")
        self.deleted_assets.append(asset_id)

    async def delete_upload(self, upload_id):
        if self.fail_delete:
            raise ProviderError("upload delete failed")
        self.deleted_uploads.append(upload_id)

    def put_asset(self, asset_id, status, duration=None, playback_ids=()):
        self.assets[asset_id] = ProviderAsset(id=asset_id, status=status, duration=duration,
                                              playback_ids=list(playback_ids))


@pytest.fixture(scope='session')
def anyio_backend():
    return 'asyncio'

@pytest.fixture
async def tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

@pytest.fixture
def provider():
    return FakeProvider()

@pytest.fixture
async def session(tables):
    async with SessionLocal() as db:
        yield db

@pytest.fixture
def coordinator(session, provider):
    return VideoLifecycleCoordinator(VideoStore(session), provider, cors_origin='http://localhost:5173')

@pytest.fixture
async def client(tables, provider):
    app.dependency_overrides[get_provider] = lambda: provider
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac
    app.dependency_overrides.clear()
