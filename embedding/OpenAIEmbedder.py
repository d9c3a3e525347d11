# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-10
# Description: OpenAIEmbedder
# -----------------------------------------------------------------------------
import time
from typing import List, Optional, Sequence

import numpy as np
from openai import AzureOpenAI

from config.Config import Config
from embedding.Embedder import Embedder
from utility.logging_utils import get_class_logger


class OpenAIEmbedder(Embedder):
    def __init__(
            self,
            cfg: Config,
            *,
            batch_size: int = 64,
            normalize: bool = True,
            dimensions: Optional[int] = None,  # e.g. 1536 to shorten text-embedding-3-large
            api_version: str = "2024-10-21",
            client: Optional[AzureOpenAI] = None,
            logger=None,
    ):
        self.cfg = cfg
        self.batch_size = batch_size
        self.normalize = normalize
        self.dimensions = dimensions
        self.logger = logger or get_class_logger(self.__class__)

        # Azure OpenAI client setup
        self.client = client or AzureOpenAI(
            api_key=cfg.openai_azure_api_key,
            azure_endpoint=cfg.openai_azure_endpoint,
            api_version=api_version,
        )
        self.model = cfg.openai_azure_embed_deployment or "text-embedding-3-large"
        self.logger.info("Azure OpenAI embedder initialised (deployment='%s', normalize=%s)", self.model, normalize)

    def _embed_batch(self, texts: List[str], *, max_retries: int = 5) -> np.ndarray:
        delay = 0.8
        kwargs = {"model": self.model, "input": texts}
        if self.dimensions:
            kwargs["dimensions"] = self.dimensions

        for attempt in range(1, max_retries + 1):
            try:
                resp = self.client.embeddings.create(**kwargs)
                arr = np.asarray([d.embedding for d in resp.data], dtype=np.float32)

                # Normalize vectors (cosine-friendly)
                if self.normalize:
                    norms = np.linalg.norm(arr, axis=1, keepdims=True) + 1e-12
                    arr = arr / norms
                return arr

            except Exception as e:
                self.logger.warning("Embedding batch failed (attempt %d/%d): %s", attempt, max_retries, e)
                if attempt == max_retries:
                    raise
                time.sleep(delay)
                delay *= 1.7  # backoff

        # Unreachable and include for type checkers
        return np.empty((0, 0), dtype=np.float32)

    def embed(self, text: str) -> List[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> List[List[float]]:
        items = list(texts)
        for i, t in enumerate(items):
            if not t or not t.strip():
                raise ValueError(f"Text at position {i} is empty; nothing to embed")

        out: List[List[float]] = []
        for i in range(0, len(items), self.batch_size):
            arr = self._embed_batch(items[i:i + self.batch_size])
            out.extend(row.tolist() for row in arr)

        self.logger.debug("Embedded %d texts with '%s'", len(out), self.model)
        return out
