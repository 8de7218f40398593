"""Payload packing and unpacking.

Values are wrapped in a timestamped JSON envelope. When the serialized
envelope is longer than the configured threshold it is gzipped and base64
encoded into a ``{"z": ...}`` wrapper, but only if that wrapper is actually
shorter; otherwise the plain envelope is kept and an inefficiency warning is
emitted so the threshold can be tuned.

Serialization is ASCII-only (``ensure_ascii``), so the length of a packed
string is also its size in bytes. The chunker relies on this.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import json
import logging
import zlib
from collections.abc import Callable
from typing import Any

from ..core.config import CacheSettings
from ..core.events import EventHook, emit
from ..core.exceptions import PackError, UnpackError
from ..utils.clock import now_ms
from .records import (
    CompressedEnvelope,
    MasterRecord,
    UnpackedResult,
    ValueRecord,
    WireRecord,
    record_from_wire,
)

logger = logging.getLogger(__name__)


class PayloadCodec:
    """Packs values into wire records and back."""

    def __init__(
        self,
        settings: CacheSettings,
        on_event: EventHook | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize codec.

        Args:
            settings: Compression switch and threshold are read from here
            on_event: Optional observer for recovered errors and diagnostics
            clock: Source of record timestamps (epoch ms)
        """
        self._settings = settings
        self._on_event = on_event
        self._clock = clock

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    def encode(self, record: WireRecord) -> str:
        """Serialize a record.

        Raises:
            PackError: If the record holds values JSON cannot represent
        """
        try:
            return json.dumps(record.to_wire(), separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise PackError(f"Cannot serialize payload: {e}") from e

    def decode(self, text: str | bytes) -> WireRecord | str:
        """Parse a packed string into its record variant.

        Returns the text unchanged when it parses but is not an envelope.

        Raises:
            UnpackError: If the text is not valid JSON
        """
        try:
            if isinstance(text, (bytes, bytearray)):
                text = bytes(text).decode("utf-8")
            parsed = json.loads(text)
        except (TypeError, ValueError) as e:
            raise UnpackError(f"Unable to parse cache value: {e}") from e
        record = record_from_wire(parsed)
        return text if record is None else record

    def compress(self, serialized: str) -> str:
        # mtime=0 keeps the output a pure function of the input
        return base64.b64encode(gzip.compress(serialized.encode("utf-8"), mtime=0)).decode("ascii")

    def decompress(self, payload: str) -> str:
        """Reverse compress().

        Raises:
            UnpackError: If the payload is not base64 gzip of UTF-8 text
        """
        try:
            return gzip.decompress(base64.b64decode(payload, validate=True)).decode("utf-8")
        except (binascii.Error, OSError, EOFError, zlib.error, UnicodeDecodeError) as e:
            raise UnpackError(f"Unable to decompress cache value: {e}") from e

    def pack(self, value: Any, *, master: bool = False) -> str | None:
        """Pack a value (or a master record's leaf keys) for the store.

        Args:
            value: Any JSON-serializable value, or the ordered leaf key list
            master: Build a master record (``k``) instead of a value record (``p``)

        Returns:
            Packed string, or None if the value cannot be serialized
        """
        timestamp = self._clock()
        record: WireRecord = (
            MasterRecord(timestamp=timestamp, keys=value)
            if master
            else ValueRecord(timestamp=timestamp, value=value)
        )
        try:
            packed = self.encode(record)
        except PackError as e:
            emit(
                "pack_failed",
                level=logging.ERROR,
                on_event=self._on_event,
                error=e,
                log=logger,
                master=master,
            )
            return None

        settings = self._settings
        if not settings.compression_enabled or len(packed) <= settings.compression_threshold_bytes:
            return packed

        zipped = self.encode(CompressedEnvelope(payload=self.compress(packed)))
        if len(zipped) < len(packed):
            return zipped

        emit(
            "compression_ineffective",
            level=logging.WARNING,
            on_event=self._on_event,
            log=logger,
            compressed_length=len(zipped),
            packed_length=len(packed),
            compression_threshold_bytes=settings.compression_threshold_bytes,
        )
        return packed

    def unpack(self, record: str | bytes) -> UnpackedResult | str | None:
        """Unpack a string read from the store.

        Returns:
            UnpackedResult for envelopes (compressed or not), the raw string for
            values that were not written by this codec, None if unparseable
        """
        try:
            decoded = self.decode(record)
            if isinstance(decoded, CompressedEnvelope):
                inner = self.decode(self.decompress(decoded.payload))
                if not isinstance(inner, (ValueRecord, MasterRecord)):
                    raise UnpackError("Compressed envelope holds neither a value nor a master record")
                decoded = inner
        except UnpackError as e:
            emit(
                "unpack_failed",
                level=logging.WARNING,
                on_event=self._on_event,
                error=e,
                log=logger,
                length=len(record),
            )
            return None

        if isinstance(decoded, (ValueRecord, MasterRecord)):
            return UnpackedResult.from_record(decoded)
        return decoded
