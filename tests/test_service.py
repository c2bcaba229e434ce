import pytest

from app.features.storage import FileMetadataRecord, StorageClient, StoredFile, route
from app.features.storage.service import FileMetadataService

pytestmark = pytest.mark.anyio

ROUTES = {"images": route(file_types=["image/*"], max_file_size=1000)}


async def _stored(object_store, count: int) -> list[StoredFile]:
    files = []
    for i in range(count):
        storage_id = await object_store.store(f"blob-{i}".encode(), "image/png")
        files.append(StoredFile(id=storage_id, url=await object_store.get_url(storage_id)))
    return files


async def test_create_then_fetch_round_trip(session_factory, object_store):
    service = FileMetadataService()
    [stored] = await _stored(object_store, 1)

    async with session_factory() as db:
        [created] = await service.create_many(db, [stored], {"category": "test"}, bucket="images")

    async with session_factory() as db:
        [record] = await service.get_by_ids(db, [created.id])

    assert record.bucket == "images"
    assert record.storage_id == stored.id
    assert record.public_url == stored.url
    assert record.file_metadata == {"category": "test"}

    payload = FileMetadataRecord.from_record(record).model_dump(by_alias=True)
    assert payload["storageId"] == stored.id
    assert payload["publicUrl"] == stored.url
    assert payload["metadata"] == {"category": "test"}
    assert created.created_at.tzinfo is not None


async def test_get_by_ids_preserves_order_and_marks_missing(session_factory, object_store):
    service = FileMetadataService()
    stored = await _stored(object_store, 2)

    async with session_factory() as db:
        first, second = await service.create_many(db, stored, {}, bucket="images")
        records = await service.get_by_ids(db, [second.id, "missing", first.id, second.id])

    assert [r.id if r else None for r in records] == [second.id, None, first.id, second.id]
    assert records[0].storage_id == stored[1].id


async def test_create_many_does_not_deduplicate(session_factory, object_store):
    service = FileMetadataService()
    [stored] = await _stored(object_store, 1)

    async with session_factory() as db:
        await service.create_many(db, [stored, stored], {}, bucket="images")
        records = await service.list_by_bucket(db, "images")
        other = await service.list_by_bucket(db, "documents")

    assert len(records) == 2
    assert records[0].id != records[1].id
    assert other == []


async def test_delete_by_ids_ignores_unknown(session_factory, object_store):
    service = FileMetadataService()
    stored = await _stored(object_store, 2)

    async with session_factory() as db:
        first, second = await service.create_many(db, stored, {}, bucket="images")
        await service.delete_by_ids(db, [first.id, "missing"])
        await service.delete_by_ids(db, [])
        records = await service.get_by_ids(db, [first.id, second.id])

    assert records[0] is None
    assert records[1].id == second.id


async def test_client_get_and_list_files(session_factory, object_store):
    storage = StorageClient(ROUTES, object_store=object_store)
    stored = await _stored(object_store, 2)

    async with session_factory() as db:
        first, second = await storage.metadata_service.create_many(
            db, stored, {"album": "summer"}, bucket="images"
        )

        record = await storage.get_file(db, first.id)
        assert isinstance(record, FileMetadataRecord)
        assert record.storage_id == stored[0].id
        assert record.metadata == {"album": "summer"}
        assert record.model_dump(by_alias=True)["publicUrl"] == stored[0].url
        assert await storage.get_file(db, "missing") is None

        listed = await storage.list_files(db, [second.id, "missing"])
        assert listed[0].id == second.id
        assert listed[0].metadata == {"album": "summer"}
        assert listed[1] is None


async def test_client_delete_file_removes_blob_and_row(session_factory, object_store):
    storage = StorageClient(ROUTES, object_store=object_store)
    [stored] = await _stored(object_store, 1)

    async with session_factory() as db:
        [record] = await storage.metadata_service.create_many(db, [stored], {}, bucket="images")

        await storage.delete_file(db, record.id)
        assert await storage.get_file(db, record.id) is None
        assert stored.id not in object_store.objects

        # deleting again or deleting an unknown id is a no-op
        await storage.delete_file(db, record.id)
        await storage.delete_file(db, "missing")


async def test_client_delete_files_in_bulk(session_factory, object_store):
    storage = StorageClient(ROUTES, object_store=object_store)
    stored = await _stored(object_store, 3)

    async with session_factory() as db:
        records = await storage.metadata_service.create_many(db, stored, {}, bucket="images")
        keep = records[2]

        await storage.delete_files(db, [records[0].id, records[1].id, "missing"])
        await storage.delete_files(db, [])

        remaining = await storage.list_files(db, [r.id for r in records])

    assert [r.id if r else None for r in remaining] == [None, None, keep.id]
    assert list(object_store.objects) == [keep.storage_id]
