import io
from pathlib import Path

import pytest
from PIL import Image

from rsvp.config.settings import Settings


def make_image_bytes(
    size: tuple[int, int] = (64, 48),
    fmt: str = "JPEG",
    color: tuple[int, int, int] = (200, 30, 30),
) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture()
def jpeg_bytes() -> bytes:
    """Small valid JPEG."""
    return make_image_bytes()


@pytest.fixture()
def png_bytes() -> bytes:
    """Small valid PNG."""
    return make_image_bytes(fmt="PNG", color=(10, 120, 200))


@pytest.fixture()
def noisy_jpeg_bytes() -> bytes:
    """Large, hard-to-compress JPEG (random noise) for compression tests."""
    noise = Image.effect_noise((600, 600), 120).convert("RGB")
    buf = io.BytesIO()
    noise.save(buf, format="JPEG", quality=100)
    return buf.getvalue()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every data path at a temporary directory."""
    return Settings(
        data_dir=tmp_path / "data",
        store_write_retry_delay_seconds=0.0,
    )


@pytest.fixture()
def image_bytes_factory():  # type: ignore[no-untyped-def]
    """Build image bytes of a given size/format inside a test."""
    return make_image_bytes
