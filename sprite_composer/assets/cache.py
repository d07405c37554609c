"""Sprite sheet image acquisition.

:class:`ImageCache` is the only stateful object in the pipeline. It is owned by
the embedding component, passed into every render call and torn down with
:meth:`ImageCache.close`. Entries are keyed by URL and never evicted while the
cache lives. :meth:`ImageCache.ensure` loads missing URLs in parallel (one
worker per distinct URL, deduplicated) and raises :class:`LoadFailure` if any
of them fails, so a render never starts with a partial set of sheets.
"""

import base64
import binascii
import io
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional
from urllib.parse import unquote, unquote_to_bytes, urlparse

import requests
from PIL import Image, UnidentifiedImageError

from sprite_composer.errors import LoadFailure
from sprite_composer.types import ImageLoader

log = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8
DEFAULT_TIMEOUT = 30


def _decode_data_url(url: str) -> bytes:
    header, _, payload = url.partition(",")
    if not header.endswith(";base64"):
        return unquote_to_bytes(payload)
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise LoadFailure(url[:64], f"invalid base64 payload ({e})") from e


def _read_source(url: str, timeout: float) -> bytes:
    scheme = urlparse(url).scheme.lower()
    if scheme == "data":
        return _decode_data_url(url)
    if scheme in ("http", "https"):
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise LoadFailure(url, str(e)) from e
        return response.content
    path = Path(unquote(urlparse(url).path)) if scheme == "file" else Path(url)
    try:
        return path.read_bytes()
    except OSError as e:
        raise LoadFailure(url, str(e)) from e


def load_image(url: str, timeout: float = DEFAULT_TIMEOUT) -> Image.Image:
    """Load one sheet image as RGBA.

    Supports local paths, ``file://`` URLs, ``data:`` URLs and HTTP(S) URLs.

    Raises:
        LoadFailure: If the source cannot be read or decoded.
    """
    data = _read_source(url, timeout)
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise LoadFailure(url, f"not a decodable image ({e})") from e


class ImageCache:
    """URL-keyed cache of loaded sprite sheet images.

    Usage::

        cache = ImageCache()
        try:
            cache.ensure(["head.png", "body.png"])
            image = cache["head.png"]
        finally:
            cache.close()

    Attributes:
        loader: Callable turning a URL into an RGBA image.
    """

    def __init__(
        self,
        loader: Optional[ImageLoader] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.loader: ImageLoader = loader or load_image
        self._images: Dict[str, Image.Image] = {}
        self._pending: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers)
        self._closed = False

    def __contains__(self, url: object) -> bool:
        return url in self._images

    def __getitem__(self, url: str) -> Image.Image:
        return self._images[url]

    def __len__(self) -> int:
        return len(self._images)

    def get(self, url: str) -> Optional[Image.Image]:
        return self._images.get(url)

    def put(self, url: str, image: Image.Image) -> None:
        """Seed the cache with an already loaded image."""
        with self._lock:
            self._images[url] = image.convert("RGBA") if image.mode != "RGBA" else image

    def _load(self, url: str) -> Image.Image:
        log.debug("Loading sprite sheet %s", url)
        try:
            image = self.loader(url)
        except LoadFailure:
            raise
        except Exception as e:
            raise LoadFailure(url, str(e)) from e
        return image.convert("RGBA") if image.mode != "RGBA" else image

    def _submit(self, url: str) -> Future:
        with self._lock:
            future = self._pending.get(url)
            if future is None:
                future = self._executor.submit(self._load, url)
                self._pending[url] = future
            return future

    def ensure(self, urls: Iterable[str]) -> Mapping[str, Image.Image]:
        """Load every URL not yet cached and wait for all of them.

        Concurrent calls asking for the same URL share one load.

        Returns:
            Mapping[str, Image.Image]: The requested images keyed by URL.

        Raises:
            LoadFailure: If any requested image fails to load. Failed URLs are
                not cached, so a later call retries them.
        """
        if self._closed:
            raise RuntimeError("ImageCache is closed")

        wanted: List[str] = list(dict.fromkeys(urls))
        futures = {url: self._submit(url) for url in wanted if url not in self._images}

        failure: Optional[LoadFailure] = None
        for url, future in futures.items():
            try:
                image = future.result()
            except LoadFailure as e:
                log.error("Failed to load sprite sheet %s: %s", url, e.reason)
                failure = failure or e
            else:
                with self._lock:
                    self._images[url] = image
            finally:
                with self._lock:
                    if self._pending.get(url) is future:
                        del self._pending[url]
        if failure is not None:
            raise failure

        return {url: self._images[url] for url in wanted}

    def clear(self) -> None:
        with self._lock:
            self._images.clear()

    def close(self) -> None:
        """Release the worker pool and drop cached images."""
        self._closed = True
        self._executor.shutdown(wait=True)
        self.clear()

    def __enter__(self) -> "ImageCache":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
