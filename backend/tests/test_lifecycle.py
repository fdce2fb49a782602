import pytest
from app.schemas.video import CreateUploadRequest
from app.schemas.webhook import parse_provider_event
from app.services.lifecycle import EventOutcome, UploadInitError, VideoNotFound, PLACEHOLDER_TITLE

pytestmark = pytest.mark.anyio


def created(asset_id, upload_id):
    return parse_provider_event({"type": "video.asset.created", "data": {"id": asset_id, "upload_id": upload_id}})

def ready(asset_id, duration, playback_ids, upload_id=None):
    data = {"id": asset_id, "duration": duration, "playback_ids": [{"id": p} for p in playback_ids]}
    if upload_id:
        data["upload_id"] = upload_id
    return parse_provider_event({"type": "video.asset.ready", "data": data})

def errored(asset_id, upload_id=None):
    data = {"id": asset_id, "errors": {"type": "invalid_input", "messages": ["bad file"]}}
    if upload_id:
        data["upload_id"] = upload_id
    return parse_provider_event({"type": "video.asset.errored", "data": data})


async def test_initiate_creates_pending_record(coordinator, provider):
    video, upload = await coordinator.initiate(CreateUploadRequest(title="Demo", tags=["a"]))
    assert video.status == "awaiting_upload"
    assert video.provider_upload_id == upload.id
    assert upload.url.endswith(upload.id)
    assert video.settings == {"allowComments": True, "allowRatings": True, "autoplay": True}
    assert provider.cors_origins == ["http://localhost:5173"]
    assert provider.uploads[upload.id] == "public"

async def test_initiate_defaults_title(coordinator):
    video, _ = await coordinator.initiate(CreateUploadRequest())
    assert video.title == PLACEHOLDER_TITLE
    assert video.author["id"] == "anonymous"

async def test_initiate_failure_leaves_no_record(coordinator, provider):
    provider.fail_create = True
    with pytest.raises(UploadInitError):
        await coordinator.initiate(CreateUploadRequest(title="Doomed"))
    assert await coordinator.store.list_newest_first() == []

async def test_demo_scenario(coordinator):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Demo"))
    upload_id = video.provider_upload_id

    assert await coordinator.handle_provider_event(created("asset_1", upload_id)) is EventOutcome.APPLIED
    video = await coordinator.get(video.id)
    assert video.status == "processing"
    assert video.provider_asset_id == "asset_1"
    assert video.playback_id is None and video.duration is None

    assert await coordinator.handle_provider_event(ready("asset_1", 42.5, ["pb_1", "pb_2"])) is EventOutcome.APPLIED
    video = await coordinator.get(video.id)
    assert (video.status, video.duration, video.playback_id) == ("ready", 42.5, "pb_1")

async def test_ready_before_created_resolves_by_upload_id(coordinator):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Out of order"))
    upload_id = video.provider_upload_id

    outcome = await coordinator.handle_provider_event(ready("asset_9", 10.0, ["pb_9"], upload_id=upload_id))
    assert outcome is EventOutcome.APPLIED
    video = await coordinator.get(video.id)
    assert video.status == "ready"
    assert video.provider_asset_id == "asset_9"

    # the late created event must not move the video back to processing
    await coordinator.handle_provider_event(created("asset_9", upload_id))
    video = await coordinator.get(video.id)
    assert (video.status, video.duration, video.playback_id) == ("ready", 10.0, "pb_9")

async def test_duplicate_ready_is_idempotent(coordinator):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Twice"))
    await coordinator.handle_provider_event(created("asset_2", video.provider_upload_id))
    event = ready("asset_2", 7.25, ["pb_2"])
    await coordinator.handle_provider_event(event)
    first = await coordinator.get(video.id)
    snapshot = (first.status, first.duration, first.playback_id, first.provider_asset_id)
    await coordinator.handle_provider_event(event)
    second = await coordinator.get(video.id)
    assert (second.status, second.duration, second.playback_id, second.provider_asset_id) == snapshot

async def test_unmatched_events_are_misses(coordinator):
    assert await coordinator.handle_provider_event(created("asset_x", "up_missing")) is EventOutcome.MISSED
    assert await coordinator.handle_provider_event(ready("asset_x", 1.0, ["pb"])) is EventOutcome.MISSED
    assert await coordinator.handle_provider_event(errored("asset_x")) is EventOutcome.MISSED

async def test_errored_marks_video(coordinator):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Broken"))
    await coordinator.handle_provider_event(created("asset_3", video.provider_upload_id))
    assert await coordinator.handle_provider_event(errored("asset_3")) is EventOutcome.APPLIED
    video = await coordinator.get(video.id)
    assert video.status == "error"
    assert video.playback_id is None and video.duration is None

    # terminal: a stray ready afterwards is ignored
    assert await coordinator.handle_provider_event(ready("asset_3", 3.0, ["pb_3"])) is EventOutcome.IGNORED
    assert (await coordinator.get(video.id)).status == "error"

async def test_errored_falls_back_to_upload_id(coordinator):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Early failure"))
    outcome = await coordinator.handle_provider_event(errored("asset_4", upload_id=video.provider_upload_id))
    assert outcome is EventOutcome.APPLIED
    assert (await coordinator.get(video.id)).status == "error"

async def test_asset_id_is_never_replaced(coordinator):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Sticky"))
    await coordinator.handle_provider_event(created("asset_5", video.provider_upload_id))
    await coordinator.handle_provider_event(created("asset_other", video.provider_upload_id))
    assert (await coordinator.get(video.id)).provider_asset_id == "asset_5"

async def test_reconcile_pulls_ready_state(coordinator, provider):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Missed webhook"))
    await coordinator.handle_provider_event(created("asset_6", video.provider_upload_id))
    provider.put_asset("asset_6", "ready", duration=12.0, playback_ids=["pb_6"])

    video = await coordinator.reconcile_on_read(await coordinator.get(video.id))
    assert (video.status, video.duration, video.playback_id) == ("ready", 12.0, "pb_6")

async def test_reconcile_keeps_processing_while_preparing(coordinator, provider):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Slow"))
    await coordinator.handle_provider_event(created("asset_7", video.provider_upload_id))
    provider.put_asset("asset_7", "preparing")
    video = await coordinator.reconcile_on_read(await coordinator.get(video.id))
    assert video.status == "processing"
    assert video.duration is None

async def test_reconcile_needs_duration_before_ready(coordinator, provider):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="No duration yet"))
    await coordinator.handle_provider_event(created("asset_12", video.provider_upload_id))
    provider.put_asset("asset_12", "ready", duration=None, playback_ids=["pb_12"])

    video = await coordinator.reconcile_on_read(await coordinator.get(video.id))
    assert video.status == "processing"
    assert video.duration is None and video.playback_id is None

async def test_reconcile_with_unreachable_provider_returns_stored(coordinator, provider):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Stale"))
    await coordinator.handle_provider_event(created("asset_8", video.provider_upload_id))
    await coordinator.handle_provider_event(ready("asset_8", 5.0, ["pb_8"]))
    provider.fail_get = True

    video = await coordinator.reconcile_on_read(await coordinator.get(video.id))
    assert (video.status, video.duration, video.playback_id) == ("ready", 5.0, "pb_8")

async def test_reconcile_skips_records_without_asset(coordinator, provider):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Not yet"))
    provider.fail_get = True
    video = await coordinator.reconcile_on_read(video)
    assert video.status == "awaiting_upload"

async def test_retire_survives_provider_failures(coordinator, provider):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Gone"))
    await coordinator.handle_provider_event(created("asset_10", video.provider_upload_id))
    provider.fail_delete = True

    await coordinator.retire(video.id)
    with pytest.raises(VideoNotFound):
        await coordinator.get(video.id)

async def test_retire_cleans_up_provider_resources(coordinator, provider):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Tidy"))
    upload_id = video.provider_upload_id
    await coordinator.handle_provider_event(created("asset_11", upload_id))
    await coordinator.retire(video.id)
    assert provider.deleted_assets == ["asset_11"]
    assert provider.deleted_uploads == [upload_id]

async def test_retire_unknown_video(coordinator):
    with pytest.raises(VideoNotFound):
        await coordinator.retire("nope")

async def test_events_for_another_asset_do_not_touch_bound_video(coordinator):
    video, _ = await coordinator.initiate(CreateUploadRequest(title="Bound"))
    upload_id = video.provider_upload_id
    await coordinator.handle_provider_event(created("asset_13", upload_id))

    outcome = await coordinator.handle_provider_event(ready("asset_other", 99.0, ["pb_other"], upload_id=upload_id))
    assert outcome is EventOutcome.IGNORED
    outcome = await coordinator.handle_provider_event(errored("asset_other", upload_id=upload_id))
    assert outcome is EventOutcome.IGNORED

    video = await coordinator.get(video.id)
    assert (video.status, video.provider_asset_id) == ("processing", "asset_13")
    assert video.duration is None and video.playback_id is None

async def test_created_without_upload_id_is_a_miss(coordinator):
    await coordinator.initiate(CreateUploadRequest(title="Unrelated"))
    event = parse_provider_event({"type": "video.asset.created", "data": {"id": "asset_14"}})
    assert await coordinator.handle_provider_event(event) is EventOutcome.MISSED
