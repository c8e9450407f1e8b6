"""Tests for EmbeddingService."""

import os
from unittest.mock import patch

import httpx
import numpy as np
import pytest
from openai import APIConnectionError

from docchat import EmbeddingError, EmbeddingService
from docchat.config import config


def test_init_with_api_key():
    service = EmbeddingService(api_key="test-key", model="text-embedding-3-large")
    assert service.model == "text-embedding-3-large"
    assert service.client.api_key == "test-key"


def test_init_with_env_api_key():
    with patch.dict(os.environ, {"OPENAI_API_KEY": "env-key"}):
        service = EmbeddingService()
    assert service.client.api_key == "env-key"
    assert service.model == config.EMBEDDING_MODEL


def test_init_reuses_given_client(mock_openai_client):
    service = EmbeddingService(client=mock_openai_client)
    assert service.client is mock_openai_client


@pytest.mark.asyncio
async def test_embed_success(mock_openai_client, embedding_response_factory):
    mock_openai_client.embeddings.create.return_value = embedding_response_factory(
        [[0.1, 0.2, 0.3]]
    )
    service = EmbeddingService(client=mock_openai_client, model="embed-test")

    result = await service.embed("test text")

    mock_openai_client.embeddings.create.assert_awaited_once_with(
        model="embed-test", input="test text"
    )
    assert isinstance(result, np.ndarray)
    assert result.dtype == np.float32
    np.testing.assert_allclose(result, [0.1, 0.2, 0.3], rtol=1e-6)


@pytest.mark.asyncio
async def test_embed_wraps_api_error(mock_openai_client):
    request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
    mock_openai_client.embeddings.create.side_effect = APIConnectionError(
        request=request
    )
    service = EmbeddingService(client=mock_openai_client)

    with pytest.raises(EmbeddingError, match="Embedding request failed") as exc_info:
        await service.embed("test text")

    assert isinstance(exc_info.value.__cause__, APIConnectionError)


@pytest.mark.asyncio
async def test_embed_rejects_malformed_response(
    mock_openai_client, embedding_response_factory
):
    mock_openai_client.embeddings.create.return_value = embedding_response_factory([])
    service = EmbeddingService(client=mock_openai_client)

    with pytest.raises(EmbeddingError, match="did not contain a vector"):
        await service.embed("test text")


@pytest.mark.parametrize("text", ["", "   "])
@pytest.mark.asyncio
async def test_embed_rejects_blank_text(mock_openai_client, text):
    service = EmbeddingService(client=mock_openai_client)

    with pytest.raises(EmbeddingError, match="empty text"):
        await service.embed(text)

    mock_openai_client.embeddings.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_embed_batch_splits_into_batches(
    mock_openai_client, embedding_response_factory
):
    mock_openai_client.embeddings.create.side_effect = [
        embedding_response_factory([[0.1, 0.2], [0.3, 0.4]]),
        embedding_response_factory([[0.5, 0.6]]),
    ]
    service = EmbeddingService(client=mock_openai_client, model="embed-test")

    results = await service.embed_batch(["t1", "t2", "t3"], batch_size=2)

    assert mock_openai_client.embeddings.create.await_count == 2
    first_call = mock_openai_client.embeddings.create.await_args_list[0]
    assert first_call.kwargs == {"model": "embed-test", "input": ["t1", "t2"]}
    assert len(results) == 3
    np.testing.assert_allclose(results[2], [0.5, 0.6], rtol=1e-6)


@pytest.mark.asyncio
async def test_embed_batch_rejects_short_response(
    mock_openai_client, embedding_response_factory
):
    mock_openai_client.embeddings.create.return_value = embedding_response_factory(
        [[0.1, 0.2]]
    )
    service = EmbeddingService(client=mock_openai_client)

    with pytest.raises(EmbeddingError, match="1 vectors for 2 texts"):
        await service.embed_batch(["t1", "t2"], batch_size=10)


@pytest.mark.asyncio
async def test_embed_batch_stops_on_failure(
    mock_openai_client, embedding_response_factory
):
    request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
    mock_openai_client.embeddings.create.side_effect = [
        embedding_response_factory([[0.1, 0.2]]),
        APIConnectionError(request=request),
    ]
    service = EmbeddingService(client=mock_openai_client)

    with pytest.raises(EmbeddingError, match="batch 2"):
        await service.embed_batch(["t1", "t2", "t3"], batch_size=1)

    assert mock_openai_client.embeddings.create.await_count == 2
