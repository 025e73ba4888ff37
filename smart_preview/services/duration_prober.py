"""
Reads the intrinsic duration of an asset without playing it.
"""
import math
from typing import Any

from loguru import logger

from ..domain.exceptions import DecodeError, DurationExceeded, UnsupportedKind
from ..domain.media import MediaAsset, MediaKind
from ..utils.events import EventFailed, wait_for_event
from .format_classifier import classify_asset


async def load_metadata(element: Any, handle: Any, asset: MediaAsset):
    """
    Binds `handle` to `element` and suspends until its metadata is loaded.

    Raises:
        DecodeError: The element reported a load error instead.
    """
    loaded = wait_for_event(element, "loadedmetadata")
    try:
        element.src = handle
        element.load()
        await loaded
    except EventFailed as e:
        raise DecodeError(f"Failed to load media file {asset.filename}: {e.detail}") from e
    finally:
        loaded.cancel()


class DurationProber:
    def __init__(self, runtime: Any):
        self.runtime = runtime

    async def probe(self, asset: MediaAsset) -> int:
        """
        Returns the asset's duration in whole seconds (floored).

        The asset is bound to a temporary decoding element through a short-lived
        resource handle. Only metadata is loaded, and the handle is revoked on
        every path.

        Raises:
            UnsupportedKind: The asset is neither audio nor video.
            DecodeError: The runtime could not load the asset, or reported no
                         usable duration.
        """
        kind = classify_asset(asset)
        if kind == MediaKind.UNSUPPORTED:
            raise UnsupportedKind(f"File must be audio or video: {asset}")

        handle = self.runtime.create_object_url(asset)
        try:
            element = self.runtime.create_element(kind)
            await load_metadata(element, handle, asset)
            duration = element.duration
        finally:
            self.runtime.revoke_object_url(handle)

        if duration is None or not math.isfinite(duration) or duration < 0:
            raise DecodeError(f"Failed to read duration of {asset.filename}: {duration}")
        seconds = math.floor(duration)
        logger.debug(f"Probed {asset.filename}: {seconds}s")
        return seconds

    async def validate(self, asset: MediaAsset, limit_seconds: int) -> int:
        """
        Rejects, rather than trims, media longer than `limit_seconds`.

        Returns the floored duration when it is within the limit.

        Raises:
            DurationExceeded: The asset is longer than `limit_seconds`.
        """
        duration = await self.probe(asset)
        if duration > limit_seconds:
            raise DurationExceeded(duration, limit_seconds)
        return duration
