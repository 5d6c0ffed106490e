"""Tests for reference document serialization and the S3/MongoDB stores."""

import io
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from catalog_vectordb.models import Reference, ReferenceSet
from catalog_vectordb.reference_store.document import from_document, to_document
from catalog_vectordb.reference_store.mongo_reference_store import MongoReferenceStore
from catalog_vectordb.reference_store.s3_reference_store import S3ReferenceStore


def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetObject")


@pytest.fixture
def references():
    return ReferenceSet({"p1": Reference("v1", "h1"), "p2": Reference("v2", "h2")})


class TestDocument:
    def test_to_document_layout(self, references):
        document = to_document("shop", references, updated_at="2024-01-01T00:00:00+00:00")

        assert document == {
            "pk": "ECOMMERCE_CONFIG",
            "sk": "shop",
            "references": {
                "p1": {"vector_id": "v1", "hash": "h1"},
                "p2": {"vector_id": "v2", "hash": "h2"},
            },
            "createdAt": "2024-01-01T00:00:00+00:00",
            "updatedAt": "2024-01-01T00:00:00+00:00",
        }

    def test_created_at_is_preserved(self, references):
        document = to_document("shop", references, created_at="2023-05-01T00:00:00+00:00")

        assert document["createdAt"] == "2023-05-01T00:00:00+00:00"
        assert document["updatedAt"] != document["createdAt"]

    def test_from_document(self, references):
        assert from_document(to_document("shop", references)) == references

    def test_document_without_references_is_empty(self):
        assert len(from_document({"pk": "ECOMMERCE_CONFIG", "sk": "shop"})) == 0
        assert len(from_document({"references": None})) == 0

    def test_legacy_pair_list(self):
        document = {"references": [["p1", {"vectorId": "v1", "hash": "h1"}]]}

        assert from_document(document) == ReferenceSet({"p1": Reference("v1", "h1")})

    @pytest.mark.parametrize(
        "raw",
        ["not-a-mapping", [["p1"]], {"p1": {"hash": "h1"}}, {"p1": "v1"}],
    )
    def test_malformed_documents_raise_value_error(self, raw):
        with pytest.raises(ValueError):
            from_document({"references": raw})


class TestS3ReferenceStore:
    @pytest.fixture
    def s3(self):
        return MagicMock()

    @pytest.fixture
    def store(self, s3):
        return S3ReferenceStore("bucket", "us-east-1", references_prefix="refs", client=s3)

    def test_key_for(self, store):
        assert store.key_for("shop") == "refs/shop.json"

    @pytest.mark.asyncio
    async def test_find_existing_document(self, store, s3, references):
        body = json.dumps(to_document("shop", references)).encode("utf-8")
        s3.get_object.return_value = {"Body": io.BytesIO(body)}

        found = await store.find_reference_set("shop")

        assert found == references
        s3.get_object.assert_called_once_with(Bucket="bucket", Key="refs/shop.json")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["NoSuchKey", "404"])
    async def test_missing_document_is_none(self, store, s3, code):
        s3.get_object.side_effect = client_error(code)

        assert await store.find_reference_set("shop") is None

    @pytest.mark.asyncio
    async def test_other_client_errors_propagate(self, store, s3):
        s3.get_object.side_effect = client_error("AccessDenied")

        with pytest.raises(ClientError):
            await store.find_reference_set("shop")

    @pytest.mark.asyncio
    async def test_save_writes_full_document_and_keeps_created_at(self, store, s3, references):
        existing = to_document("shop", ReferenceSet(), created_at="2023-01-01T00:00:00+00:00")
        s3.get_object.return_value = {"Body": io.BytesIO(json.dumps(existing).encode("utf-8"))}

        await store.save_reference_set("shop", references)

        kwargs = s3.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "bucket"
        assert kwargs["Key"] == "refs/shop.json"
        assert kwargs["ContentType"] == "application/json"
        saved = json.loads(kwargs["Body"].decode("utf-8"))
        assert saved["createdAt"] == "2023-01-01T00:00:00+00:00"
        assert from_document(saved) == references

    @pytest.mark.asyncio
    async def test_first_save_creates_document(self, store, s3, references):
        s3.get_object.side_effect = client_error("NoSuchKey")

        await store.save_reference_set("shop", references)

        saved = json.loads(s3.put_object.call_args.kwargs["Body"].decode("utf-8"))
        assert saved["sk"] == "shop"
        assert saved["createdAt"] == saved["updatedAt"]


class TestMongoReferenceStore:
    @pytest.fixture
    def collection(self):
        return MagicMock()

    @pytest.fixture
    def store(self, collection):
        client = MagicMock()
        client.__getitem__.return_value.__getitem__.return_value = collection
        return MongoReferenceStore("mongodb://localhost", client=client)

    @pytest.mark.asyncio
    async def test_find_missing_document(self, store, collection):
        collection.find_one.return_value = None

        assert await store.find_reference_set("shop") is None
        collection.find_one.assert_called_once_with(
            {"pk": "ECOMMERCE_CONFIG", "sk": "shop"}, projection={"_id": False}
        )

    @pytest.mark.asyncio
    async def test_find_existing_document(self, store, collection, references):
        collection.find_one.return_value = to_document("shop", references)

        assert await store.find_reference_set("shop") == references

    @pytest.mark.asyncio
    async def test_save_upserts_whole_document(self, store, collection, references):
        await store.save_reference_set("shop", references)

        key, update = collection.update_one.call_args.args
        assert key == {"pk": "ECOMMERCE_CONFIG", "sk": "shop"}
        assert collection.update_one.call_args.kwargs == {"upsert": True}
        assert update["$set"]["references"] == references.to_dict()
        assert "createdAt" not in update["$set"]
        assert "createdAt" in update["$setOnInsert"]
