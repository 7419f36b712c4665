# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Bundled Unicode font asset.

The package ships Lato Regular (SIL Open Font License) as a base64 text
resource. It covers Western and Central European Latin, including the
Polish diacritics that the Standard-14 fonts cannot encode.

The payload is decoded on first demand and kept for the lifetime of the
cache object. ``DEFAULT_FONT_CACHE`` is created at import time and is the
instance used when documents are not given one explicitly.
"""

import asyncio
import base64
import binascii
import logging
import threading
from collections.abc import Callable
from importlib import resources

from ..exceptions import AssetDecodeError
from .constants import BUNDLED_FONT_FILE, SFNT_SIGNATURES

logger = logging.getLogger(__name__)


def _read_bundled_payload() -> bytes:
    """Reads the base64 payload from package resources."""
    font_ref = resources.files("pdfunicode") / "resources" / "fonts" / BUNDLED_FONT_FILE
    return font_ref.read_bytes()


def _validate_font_data(font_data: bytes) -> bool:
    """Checks that decoded data starts with a known sfnt signature."""
    return len(font_data) >= 12 and font_data[:4] in SFNT_SIGNATURES


class BundledFontCache:
    """Decodes and memoizes the bundled font payload.

    The decode runs at most once per instance, also when several threads
    ask for the bytes before the first decode has finished: later callers
    block on the lock and then read the cached result.
    """

    def __init__(self, source: Callable[[], bytes] | None = None) -> None:
        """Initializes the cache.

        Args:
            source: Callable returning the base64 payload. Defaults to the
                resource shipped with the package.
        """
        self._source = source or _read_bundled_payload
        self._lock = threading.Lock()
        self._font_data: bytes | None = None

    def get_bytes(self) -> bytes:
        """Returns the decoded font bytes, decoding on first use.

        Returns:
            Raw TrueType font data. The same object is returned on every call.

        Raises:
            AssetDecodeError: If the payload cannot be read or decoded.
        """
        font_data = self._font_data
        if font_data is not None:
            return font_data

        with self._lock:
            if self._font_data is None:
                self._font_data = self._decode()
            return self._font_data

    def is_loaded(self) -> bool:
        """Reports whether the payload has been decoded, without decoding it."""
        return self._font_data is not None

    def preload(self) -> None:
        """Decodes the payload now so later calls are free."""
        self.get_bytes()

    async def get_bytes_async(self) -> bytes:
        """Asynchronous counterpart to :meth:`get_bytes`."""
        return await asyncio.to_thread(self.get_bytes)

    async def preload_async(self) -> None:
        """Asynchronous counterpart to :meth:`preload`."""
        await asyncio.to_thread(self.preload)

    def _decode(self) -> bytes:
        try:
            payload = self._source()
        except Exception as e:
            raise AssetDecodeError(f"Could not read bundled font payload: {e}") from e

        try:
            font_data = base64.b64decode(b"".join(payload.split()), validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            raise AssetDecodeError(f"Bundled font payload is not valid base64: {e}") from e

        if not _validate_font_data(font_data):
            raise AssetDecodeError("Bundled font payload is not a TrueType/OpenType font")

        logger.debug("Bundled font decoded: %d bytes", len(font_data))
        return font_data


DEFAULT_FONT_CACHE = BundledFontCache()


def get_bundled_font_bytes() -> bytes:
    """Returns the bundled font bytes from the default cache."""
    return DEFAULT_FONT_CACHE.get_bytes()


def preload_bundled_font() -> None:
    """Decodes the bundled font into the default cache."""
    DEFAULT_FONT_CACHE.preload()


def is_bundled_font_loaded() -> bool:
    """Reports whether the default cache holds the decoded font."""
    return DEFAULT_FONT_CACHE.is_loaded()


async def get_bundled_font_bytes_async() -> bytes:
    """Asynchronous counterpart to :func:`get_bundled_font_bytes`."""
    return await DEFAULT_FONT_CACHE.get_bytes_async()


async def preload_bundled_font_async() -> None:
    """Asynchronous counterpart to :func:`preload_bundled_font`."""
    await DEFAULT_FONT_CACHE.preload_async()
