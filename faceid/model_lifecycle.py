"""Lazy, single-flight loading of the face embedding capability.

The capability is loaded at most once per service. Callers that arrive while
a load is in flight await the same task instead of starting another one. A
failed or timed-out load is reported to every waiter of that attempt and
then forgotten, so the next call starts a fresh attempt.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from faceid.errors import ModelLoadError
from faceid.interfaces import EmbeddingCapability
from faceid.logging_config import get_logger

logger = get_logger(__name__)

CapabilityLoader = Callable[[], EmbeddingCapability]


class ModelLifecycleService:
    """Owns the process-wide embedding capability.

    The loader is a blocking, zero-argument callable (model construction and
    weight loading); it runs in a worker thread so the event loop keeps
    serving the UI while models load.

    Attributes:
        load_timeout: Seconds after which a load attempt fails (None = no limit)

    Example:
        >>> service = ModelLifecycleService(create_capability_loader("dlib", config))
        >>> capability = await service.ensure_loaded()
        >>> descriptor = capability.detect(frame)
    """

    def __init__(self, loader: CapabilityLoader, load_timeout: Optional[float] = None):
        if load_timeout is not None and load_timeout <= 0:
            raise ValueError(f"load_timeout must be > 0 or None, got {load_timeout}")

        self._loader = loader
        self.load_timeout = load_timeout
        self._handle: Optional[EmbeddingCapability] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def is_loaded(self) -> bool:
        return self._handle is not None

    @property
    def handle(self) -> Optional[EmbeddingCapability]:
        """Loaded capability, or None until the first successful load."""
        return self._handle

    async def ensure_loaded(self) -> EmbeddingCapability:
        """Return the loaded capability, loading it if necessary.

        Returns:
            The shared, read-only capability handle.

        Raises:
            ModelLoadError: If the load attempt this call attached to failed
                or exceeded ``load_timeout``.
        """
        if self._handle is not None:
            return self._handle

        if self._pending is None:
            logger.info("Loading face embedding models...")
            self._pending = asyncio.get_running_loop().create_task(self._load())
        else:
            logger.debug("Model load already in flight, waiting for it")

        # shield: one waiter being cancelled must not abort the shared load
        return await asyncio.shield(self._pending)

    async def _load(self) -> EmbeddingCapability:
        try:
            capability = await asyncio.wait_for(
                asyncio.to_thread(self._loader), timeout=self.load_timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Model load timed out after {self.load_timeout}s")
            raise ModelLoadError(
                f"Model load timed out after {self.load_timeout}s"
            ) from e
        except ModelLoadError:
            logger.error("Model load failed", exc_info=True)
            raise
        except Exception as e:
            logger.error(f"Model load failed: {e}")
            raise ModelLoadError(f"Failed to load face models: {e}") from e
        else:
            self._handle = capability
            logger.info(f"Face embedding models loaded: {capability!r}")
            return capability
        finally:
            self._pending = None

    def __repr__(self) -> str:
        status = "loaded" if self.is_loaded else ("loading" if self._pending else "not loaded")
        return f"ModelLifecycleService(status={status}, timeout={self.load_timeout})"
