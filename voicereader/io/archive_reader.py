"""Streaming reader for ZIP-like archives returned by document jobs.

Responsibilities:
- Walk local file headers from the start of the buffer without a central directory.
- Decode stored and raw-DEFLATE entries on demand.
- Surface only text entries (`.md`, `.txt`, `.html`) while scanning past all others.

Key types:
- `LocalFileHeader`: fixed-width header record decoded with `struct`.
- `ArchiveReader`: generator-based entry reader.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct
from typing import Iterator
import zlib

from loguru import logger

from ..models.datatypes import ArchiveEntry


LOCAL_FILE_HEADER_SIGNATURE = 0x04034B50
DATA_DESCRIPTOR_SIGNATURE = 0x08074B50
COMPRESSION_STORED = 0
COMPRESSION_DEFLATE = 8
_DATA_DESCRIPTOR_FLAG = 0x08


@dataclass(frozen=True, slots=True)
class LocalFileHeader:
    """Fixed 30-byte ZIP local file header.

    Attributes:
        signature: Magic value, `0x04034B50` for a valid header.
        version_needed: Minimum extractor version.
        flags: General-purpose bit flags (bit 3 marks a trailing data descriptor).
        compression_method: `0` for stored, `8` for DEFLATE.
        mod_time: DOS modification time.
        mod_date: DOS modification date.
        crc32: CRC-32 of the uncompressed payload.
        compressed_size: Payload size in the archive.
        uncompressed_size: Payload size after decompression.
        filename_length: Byte length of the filename that follows the header.
        extra_length: Byte length of the extra field that follows the filename.
    """

    signature: int
    version_needed: int
    flags: int
    compression_method: int
    mod_time: int
    mod_date: int
    crc32: int
    compressed_size: int
    uncompressed_size: int
    filename_length: int
    extra_length: int

    FORMAT = "<IHHHHHIIIHH"
    SIZE = struct.calcsize(FORMAT)

    @classmethod
    def unpack_from(cls, data: bytes, offset: int) -> LocalFileHeader | None:
        """Decode a header at `offset`, or return `None` when it does not fit."""

        if offset < 0 or offset + cls.SIZE > len(data):
            return None
        return cls(*struct.unpack_from(cls.FORMAT, data, offset))

    @property
    def is_valid(self) -> bool:
        """Return whether the signature identifies a local file header."""

        return self.signature == LOCAL_FILE_HEADER_SIGNATURE

    @property
    def has_data_descriptor(self) -> bool:
        """Return whether a data descriptor trails the payload."""

        return bool(self.flags & _DATA_DESCRIPTOR_FLAG)

    @property
    def stored_size(self) -> int:
        """Return the number of payload bytes occupied in the archive."""

        return self.compressed_size if self.compressed_size > 0 else self.uncompressed_size


class ArchiveReader:
    """Read text entries from an archive buffer by scanning local file headers."""

    TEXT_EXTENSIONS = (".md", ".txt", ".html")

    def read_entries(self, data: bytes) -> Iterator[ArchiveEntry]:
        """Yield decoded text entries in archive order.

        Scanning stops without error at the first non-header signature (central
        directory or end of data) or at the first entry that does not fit in the
        buffer. A corrupt DEFLATE entry is logged and skipped.
        """

        offset = 0
        while True:
            header = LocalFileHeader.unpack_from(data, offset)
            if header is None or not header.is_valid:
                return

            name_start = offset + LocalFileHeader.SIZE
            payload_start = name_start + header.filename_length + header.extra_length
            payload_end = payload_start + header.stored_size
            if payload_end > len(data):
                logger.debug("Archive entry at offset {} is truncated; stopping scan.", offset)
                return

            name = data[name_start : name_start + header.filename_length].decode(
                "utf-8", errors="replace"
            )
            if self.is_text_entry(name):
                entry = self._decode_entry(name, header, data[payload_start:payload_end])
                if entry is not None:
                    yield entry
            else:
                logger.debug("Skipping non-text archive entry `{}`.", name)

            offset = payload_end
            if header.has_data_descriptor:
                offset += self._data_descriptor_size(data, offset)

    def is_text_entry(self, name: str) -> bool:
        """Return whether an entry name carries a recognized text extension."""

        return name.lower().endswith(self.TEXT_EXTENSIONS)

    def _decode_entry(
        self,
        name: str,
        header: LocalFileHeader,
        raw_payload: bytes,
    ) -> ArchiveEntry | None:
        """Decode one entry payload, returning `None` for undecodable entries."""

        if header.compression_method == COMPRESSION_STORED:
            payload = raw_payload[: header.uncompressed_size]
        elif header.compression_method == COMPRESSION_DEFLATE:
            try:
                payload = self._inflate_raw(raw_payload[: header.compressed_size])
            except zlib.error as exc:
                logger.warning("Failed to decompress archive entry `{}`: {}", name, exc)
                return None
        else:
            logger.warning(
                "Skipping archive entry `{}` with unsupported compression method {}.",
                name,
                header.compression_method,
            )
            return None

        return ArchiveEntry(
            name=name,
            compression_method=header.compression_method,
            compressed_size=header.compressed_size,
            uncompressed_size=header.uncompressed_size,
            payload=payload,
        )

    @staticmethod
    def _inflate_raw(data: bytes) -> bytes:
        """Inflate a raw (headerless) DEFLATE stream."""

        decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
        return decompressor.decompress(data) + decompressor.flush()

    @staticmethod
    def _data_descriptor_size(data: bytes, offset: int) -> int:
        """Return the data descriptor length, including the optional signature."""

        if offset + 4 <= len(data):
            (marker,) = struct.unpack_from("<I", data, offset)
            if marker == DATA_DESCRIPTOR_SIGNATURE:
                return 16
        return 12
