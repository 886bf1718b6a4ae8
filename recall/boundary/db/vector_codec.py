"""
Embedding vector blob codec.

Vectors are stored as big-endian IEEE-754 float32 values, 4 bytes each,
concatenated in vector order.

Dependencies: struct (stdlib)
System role: Binary representation of embeddings in the database
"""

import struct
from collections.abc import Sequence

from recall.core.exceptions import ValidationError

BYTES_PER_COMPONENT = 4


def encode_vector(vector: Sequence[float]) -> bytes:
    """
    Serialize a vector to a big-endian float32 blob.

    Args:
        vector: Float components

    Returns:
        bytes: 4 * len(vector) bytes
    """
    return struct.pack(f">{len(vector)}f", *vector)


def decode_vector(blob: bytes) -> list[float]:
    """
    Deserialize a big-endian float32 blob.

    Args:
        blob: Bytes produced by encode_vector

    Returns:
        list[float]: Vector components

    Raises:
        ValidationError: When the blob length is not a multiple of 4
    """
    if len(blob) % BYTES_PER_COMPONENT:
        raise ValidationError(
            "Embedding blob length is not a multiple of 4",
            field="embedding",
            details={"length": len(blob)},
        )
    return list(struct.unpack(f">{len(blob) // BYTES_PER_COMPONENT}f", blob))
