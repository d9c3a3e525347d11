# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-17
# Description: test_openai_embedder.py
# -----------------------------------------------------------------------------
from types import SimpleNamespace

import numpy as np
import pytest

from config.Config import Config
from embedding.OpenAIEmbedder import OpenAIEmbedder


def _cfg() -> Config:
    return Config(
        couchbase_connection_string="couchbase://localhost",
        couchbase_username="user",
        couchbase_password="secret",
        couchbase_bucket="vectors",
        couchbase_scope="demo",
        couchbase_collection="terms",
        openai_azure_api_key="key",
        openai_azure_endpoint="https://example.openai.azure.com",
        openai_azure_embed_deployment="embed-deployment",
    )


class FakeEmbeddings:
    def __init__(self, fail_times: int = 0):
        self.fail_times = fail_times
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.fail_times:
            self.fail_times -= 1
            raise RuntimeError("rate limited")
        data = [SimpleNamespace(embedding=[3.0, 4.0]) for _ in kwargs["input"]]
        return SimpleNamespace(data=data)


def _embedder(fake, **kwargs):
    return OpenAIEmbedder(_cfg(), client=SimpleNamespace(embeddings=fake), **kwargs)


def test_embed_normalises():
    fake = FakeEmbeddings()
    vec = _embedder(fake).embed("hello")

    assert vec == pytest.approx([0.6, 0.8], abs=1e-6)
    assert fake.calls[0]["model"] == "embed-deployment"
    assert np.linalg.norm(vec) == pytest.approx(1.0, abs=1e-6)


def test_embed_batch_splits_by_batch_size():
    fake = FakeEmbeddings()
    out = _embedder(fake, batch_size=2, normalize=False, dimensions=2).embed_batch(["a", "b", "c"])

    assert out == [[3.0, 4.0]] * 3
    assert [len(c["input"]) for c in fake.calls] == [2, 1]
    assert fake.calls[0]["dimensions"] == 2


def test_retries_then_succeeds(monkeypatch):
    monkeypatch.setattr("embedding.OpenAIEmbedder.time.sleep", lambda s: None)
    fake = FakeEmbeddings(fail_times=2)

    assert _embedder(fake).embed("x") == pytest.approx([0.6, 0.8], abs=1e-6)
    assert len(fake.calls) == 3


def test_failure_propagates_after_retries(monkeypatch):
    monkeypatch.setattr("embedding.OpenAIEmbedder.time.sleep", lambda s: None)
    fake = FakeEmbeddings(fail_times=10)

    with pytest.raises(RuntimeError):
        _embedder(fake).embed("x")
    assert len(fake.calls) == 5


def test_empty_text_rejected():
    with pytest.raises(ValueError):
        _embedder(FakeEmbeddings()).embed_batch(["ok", " "])


def test_config_fails_fast_on_missing_values():
    with pytest.raises(ValueError) as exc:
        Config(**{**_cfg().__dict__, "couchbase_bucket": ""})
    assert "COUCHBASE_BUCKET" in str(exc.value)
    assert str(_cfg().keyspace) == "vectors.demo.terms"


def test_config_rejects_unknown_connection_scheme():
    with pytest.raises(ValueError) as exc:
        Config(**{**_cfg().__dict__, "couchbase_connection_string": "http://localhost:8091"})
    assert "COUCHBASE_CONNECTION_STRING" in str(exc.value)
