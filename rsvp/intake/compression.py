import io
from abc import ABC, abstractmethod
from pathlib import PurePosixPath

from PIL import Image, ImageOps

from rsvp.intake.exceptions import CompressionError
from rsvp.intake.models import ImageFile


class BaseImageCompressor(ABC):
    """Contract for lossy image recompression adapters."""

    @abstractmethod
    def compress(self, image: ImageFile, target_bytes: int) -> ImageFile:
        """Recompress an image so its payload fits within target_bytes.

        Args:
            image: Original file as selected by the user.
            target_bytes: Size budget for the recompressed payload.

        Returns:
            A new ImageFile; the original is never modified.

        Raises:
            CompressionError: if the image cannot be decoded or does not fit.
        """


class PillowCompressor(BaseImageCompressor):
    """Re-encodes images as JPEG, lowering quality first and then resolution."""

    QUALITY_STEPS = (85, 75, 65, 55, 45)
    SCALE_FACTOR = 0.75
    MAX_DOWNSCALES = 6
    DOWNSCALE_QUALITY = 75

    def compress(self, image: ImageFile, target_bytes: int) -> ImageFile:
        try:
            with Image.open(io.BytesIO(image.data)) as opened:
                picture = ImageOps.exif_transpose(opened).convert("RGB")
            encoded = self._fit(picture, target_bytes)
        except CompressionError:
            raise
        except Exception as exc:
            raise CompressionError(f"Pillow compression failed: {exc}") from exc

        stem = PurePosixPath(image.filename).stem or "image"
        return ImageFile(filename=f"{stem}.jpg", content_type="image/jpeg", data=encoded)

    def _fit(self, picture: Image.Image, target_bytes: int) -> bytes:
        for quality in self.QUALITY_STEPS:
            encoded = self._encode(picture, quality)
            if len(encoded) <= target_bytes:
                return encoded

        for _ in range(self.MAX_DOWNSCALES):
            width, height = picture.size
            size = (max(1, int(width * self.SCALE_FACTOR)), max(1, int(height * self.SCALE_FACTOR)))
            picture = picture.resize(size, Image.Resampling.LANCZOS)
            encoded = self._encode(picture, self.DOWNSCALE_QUALITY)
            if len(encoded) <= target_bytes:
                return encoded

        raise CompressionError(
            f"Could not compress image below {target_bytes} bytes "
            f"(last attempt {len(encoded)} bytes)"
        )

    @staticmethod
    def _encode(picture: Image.Image, quality: int) -> bytes:
        buf = io.BytesIO()
        picture.save(buf, format="JPEG", quality=quality, optimize=True)
        return buf.getvalue()
