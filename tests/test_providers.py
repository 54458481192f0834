"""
Tests for the Ollama providers against a mocked HTTP transport.
"""

import asyncio
import json

import httpx
import pytest

from recipe_cache.errors import ProviderError
from recipe_cache.protocols import ChatModel, EmbeddingProvider
from recipe_cache.repositories import OllamaChatModel, OllamaEmbeddingProvider


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_embedding_batch_is_one_request():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3] for _ in body["input"]]})

    provider = OllamaEmbeddingProvider(model_name="custom-embedder", base_url="http://ollama.test/")
    provider._client = _mock_client(handler)

    vectors = asyncio.run(provider.encode_batch(["Sarma", "Punjene paprike"]))

    assert vectors == [[0.1, 0.2, 0.3], [0.1, 0.2, 0.3]]
    assert requests == [{"model": "custom-embedder", "input": ["Sarma", "Punjene paprike"], "truncate": True}]
    assert provider.dimension == 3
    assert isinstance(provider, EmbeddingProvider)


def test_known_model_dimension_before_first_call():
    assert OllamaEmbeddingProvider(model_name="mxbai-embed-large:latest").dimension == 1024
    assert OllamaEmbeddingProvider(model_name="something-new").dimension == 768


def test_missing_model_is_a_provider_error():
    provider = OllamaEmbeddingProvider(model_name="nomic-embed-text")
    provider._client = _mock_client(lambda request: httpx.Response(404, json={"error": "model not found"}))

    with pytest.raises(ProviderError, match="ollama pull"):
        asyncio.run(provider.encode("Sarma"))


def test_unreachable_server_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = OllamaEmbeddingProvider()
    provider._client = _mock_client(handler)

    assert asyncio.run(provider.is_available()) is False


def test_mismatched_embedding_count_is_rejected():
    provider = OllamaEmbeddingProvider()
    provider._client = _mock_client(lambda request: httpx.Response(200, json={"embeddings": [[1.0]]}))

    with pytest.raises(ProviderError):
        asyncio.run(provider.encode_batch(["a", "b"]))


def test_chat_sends_sampling_options():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, json={"message": {"role": "assistant", "content": "Plavac Mali"}})

    model = OllamaChatModel(model_name="llama3.1", base_url="http://ollama.test")
    model._client = _mock_client(handler)

    reply = asyncio.run(model.complete("You are a sommelier.", "Sarma", temperature=0.7, max_tokens=500))

    assert reply == "Plavac Mali"
    (body,) = requests
    assert body["stream"] is False
    assert body["messages"][0] == {"role": "system", "content": "You are a sommelier."}
    assert body["options"] == {"temperature": 0.7, "num_predict": 500}
    assert isinstance(model, ChatModel)


def test_chat_http_error_is_a_provider_error():
    model = OllamaChatModel(model_name="llama3.1")
    model._client = _mock_client(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(ProviderError):
        asyncio.run(model.complete("system", "user"))
