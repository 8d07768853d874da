"""
Shared test fixtures: STL builders, pricing policies, test client.
"""

import os
import struct
import tempfile

import pytest
import trimesh
from fastapi.testclient import TestClient

# Keep the app's static mount out of the source tree
os.environ["UPLOAD_DIR"] = os.path.join(tempfile.mkdtemp(prefix="stl-served-"), "uploads")

from Backend.config import PricingPolicy, Settings, get_settings
from Backend.main import app


def box_mesh(extents=(10.0, 10.0, 10.0), offset=(0.0, 0.0, 0.0)) -> trimesh.Trimesh:
    """Closed, outward-wound box with the given side lengths in mm."""
    mesh = trimesh.creation.box(extents=extents)
    mesh.apply_translation(offset)
    return mesh


def binary_stl(mesh: trimesh.Trimesh) -> bytes:
    return mesh.export(file_type="stl")


def ascii_stl(mesh: trimesh.Trimesh) -> bytes:
    return mesh.export(file_type="stl_ascii").encode("ascii")


def empty_binary_stl() -> bytes:
    """Valid 84-byte binary header declaring zero triangles."""
    return b"\x00" * 80 + struct.pack("<I", 0)


def truncated_binary_stl() -> bytes:
    """Header declares 12 triangles but only 5 records follow."""
    full = binary_stl(box_mesh())
    return full[:84 + 5 * 50]


@pytest.fixture
def cube_triangles():
    """10 mm cube centred on the origin as an (12, 3, 3) array."""
    return box_mesh().triangles


@pytest.fixture
def cube_stl() -> bytes:
    return binary_stl(box_mesh())


@pytest.fixture
def infill_policy() -> PricingPolicy:
    return PricingPolicy(
        density=1.24,
        infill_fraction=0.42,
        price_per_gram=0.30,
        min_price=2.0,
        max_mass_grams=200.0,
    )


@pytest.fixture
def solid_policy() -> PricingPolicy:
    return PricingPolicy(
        density=1.24,
        infill_fraction=1.0,
        price_per_gram=0.30,
        min_price=10.0,
        max_mass_grams=200.0,
    )


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def scratch_dir(tmp_path):
    """Default scratch location for a store rooted at ``upload_dir``."""
    return tmp_path / ".scratch"


@pytest.fixture
def settings(upload_dir) -> Settings:
    return Settings(
        _env_file=None,
        PLA_DENSITY=1.24,
        INFILL_FACTOR=0.42,
        PRICE_PER_GRAM=0.30,
        MIN_PRICE=2.0,
        MAX_GRAMS=200.0,
        PERSIST_UPLOADS=True,
        UPLOAD_DIR=upload_dir,
        PUBLIC_HOST="prints.example.com",
    )


@pytest.fixture
def client(settings):
    """FastAPI test client bound to the ``settings`` fixture."""
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()
