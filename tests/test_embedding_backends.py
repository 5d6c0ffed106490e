"""Tests for the Bedrock and SentenceTransformer embedding services."""

import io
import json
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from catalog_vectordb.embedding.bedrock import BedrockEmbeddingService
from catalog_vectordb.embedding.sentence_transformer import SentenceTransformerEmbeddingService


def titan_response(vector):
    return {"body": io.BytesIO(json.dumps({"embedding": vector}).encode("utf-8"))}


class TestBedrockEmbeddingService:
    @pytest.mark.asyncio
    async def test_one_request_per_text_in_order(self):
        client = MagicMock()
        client.invoke_model.side_effect = lambda **kwargs: titan_response(
            [float(len(json.loads(kwargs["body"])["inputText"]))]
        )
        service = BedrockEmbeddingService("us-east-1", max_concurrency=2, client=client)

        vectors = await service.embed_batch(["a", "bb", "ccc"])

        assert vectors == [[1.0], [2.0], [3.0]]
        assert client.invoke_model.call_count == 3

    @pytest.mark.asyncio
    async def test_request_body(self):
        client = MagicMock()
        client.invoke_model.return_value = titan_response([0.1])
        service = BedrockEmbeddingService("us-east-1", model_id="titan", dimensions=256, client=client)

        await service.embed_batch(["  mug  "])

        kwargs = client.invoke_model.call_args.kwargs
        assert kwargs["modelId"] == "titan"
        assert kwargs["contentType"] == "application/json"
        assert json.loads(kwargs["body"]) == {"inputText": "mug", "dimensions": 256, "normalize": True}

    @pytest.mark.asyncio
    async def test_missing_body_fails(self):
        client = MagicMock()
        client.invoke_model.return_value = {}
        service = BedrockEmbeddingService("us-east-1", client=client)

        with pytest.raises(RuntimeError, match="Empty response"):
            await service.embed_batch(["mug"])

    @pytest.mark.asyncio
    async def test_one_failed_request_fails_the_batch(self):
        client = MagicMock()
        client.invoke_model.side_effect = [titan_response([0.1]), RuntimeError("throttled")]
        service = BedrockEmbeddingService("us-east-1", client=client)

        with pytest.raises(RuntimeError, match="throttled"):
            await service.embed_batch(["a", "b"])


class TestSentenceTransformerEmbeddingService:
    @pytest.mark.asyncio
    async def test_model_is_loaded_lazily_once(self):
        with patch("catalog_vectordb.embedding.sentence_transformer.SentenceTransformer") as model_cls:
            model_cls.return_value.encode.return_value = np.array([[0.5, 0.5], [1.0, 0.0]])
            service = SentenceTransformerEmbeddingService("some-model", batch_size=8, device="cpu")
            model_cls.assert_not_called()

            first = await service.embed_batch(["a", "b"])
            await service.embed_batch(["a", "b"])

        model_cls.assert_called_once_with("some-model", device="cpu")
        assert first == [[0.5, 0.5], [1.0, 0.0]]
        encode_kwargs = model_cls.return_value.encode.call_args.kwargs
        assert encode_kwargs["batch_size"] == 8
        assert encode_kwargs["normalize_embeddings"] is True

    @pytest.mark.asyncio
    async def test_empty_batch_skips_model(self):
        with patch("catalog_vectordb.embedding.sentence_transformer.SentenceTransformer") as model_cls:
            service = SentenceTransformerEmbeddingService("some-model")

            assert await service.embed_batch([]) == []

        model_cls.assert_not_called()
