"""STL decoding into a flat triangle soup."""

import io
import logging
import struct
from pathlib import Path

import numpy as np
import trimesh
from trimesh.exchange.stl import HeaderError

from Backend.errors import ParseError

logger = logging.getLogger(__name__)

FLOATS_PER_TRIANGLE = 9
BINARY_HEADER_BYTES = 84  # 80-byte comment + uint32 triangle count
BINARY_RECORD_BYTES = 50


class MeshGeometry:
    """Ordered triangle soup decoded from one upload.

    ``positions`` is a flat float64 array ``[x0, y0, z0, x1, ...]`` holding
    three vertices per triangle, in file order.
    """

    def __init__(self, positions):
        positions = np.array(positions, dtype=np.float64).reshape(-1)
        if positions.size == 0:
            raise ParseError("STL contains no triangles.")
        if positions.size % FLOATS_PER_TRIANGLE != 0:
            raise ParseError(
                f"Position array length {positions.size} is not a multiple of {FLOATS_PER_TRIANGLE}."
            )
        if not np.all(np.isfinite(positions)):
            raise ParseError("STL contains non-finite vertex coordinates.")
        positions.flags.writeable = False
        self.positions = positions

    @classmethod
    def from_triangles(cls, triangles) -> "MeshGeometry":
        return cls(np.asarray(triangles, dtype=np.float64).reshape(-1))

    @property
    def triangles(self) -> np.ndarray:
        """View of the positions as an (n, 3, 3) array."""
        return self.positions.reshape(-1, 3, 3)

    @property
    def triangle_count(self) -> int:
        return self.positions.size // FLOATS_PER_TRIANGLE


def _triangles_from(loaded) -> np.ndarray:
    if isinstance(loaded, trimesh.Trimesh):
        return loaded.triangles
    if isinstance(loaded, trimesh.Scene):
        meshes = [g for g in loaded.geometry.values() if isinstance(g, trimesh.Trimesh)]
        if meshes:
            return np.concatenate([m.triangles for m in meshes])
    raise ParseError("File does not contain valid STL geometry.")


def _looks_ascii(data: bytes) -> bool:
    return data[:BINARY_HEADER_BYTES].lstrip()[:5].lower() == b"solid"


def _trim_binary_padding(data: bytes) -> bytes:
    """Drop bytes after the last record declared by a binary header.

    Some exporters pad binary files; trimesh only reads a binary STL whose
    length matches its header exactly. Raises ParseError when the data is
    shorter than the header or than the records the header declares.
    """
    if _looks_ascii(data):
        return data
    if len(data) < BINARY_HEADER_BYTES:
        raise ParseError("File is too short for a binary STL header.")

    (count,) = struct.unpack_from("<I", data, BINARY_HEADER_BYTES - 4)
    expected = BINARY_HEADER_BYTES + BINARY_RECORD_BYTES * count
    if len(data) < expected:
        raise ParseError(
            f"Binary STL is truncated: header declares {count} triangles, "
            f"data holds {(len(data) - BINARY_HEADER_BYTES) // BINARY_RECORD_BYTES}."
        )
    if len(data) > expected:
        logger.debug(f"Ignoring {len(data) - expected} bytes after last STL record")
    return data[:expected]


def parse_stl(data: bytes) -> MeshGeometry:
    """Decode binary or ASCII STL bytes.

    The mesh is loaded with ``process=False`` so vertices are not merged and
    triangles keep the winding and order stored in the file. Normals in the
    file are ignored. No manifold or orientation checks are made.
    """
    if not data:
        raise ParseError("Uploaded file is empty.")

    data = _trim_binary_padding(data)

    try:
        loaded = trimesh.load(io.BytesIO(data), file_type="stl", force="mesh", process=False)
    except (HeaderError, ValueError) as e:
        raise ParseError(f"Invalid STL geometry: {e}") from e

    geometry = MeshGeometry(_triangles_from(loaded))
    logger.debug(f"Parsed STL with {geometry.triangle_count} triangles")
    return geometry


def load_stl(path: str | Path) -> MeshGeometry:
    return parse_stl(Path(path).read_bytes())
