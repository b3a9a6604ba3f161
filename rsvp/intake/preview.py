import asyncio
import base64
import io

from PIL import Image, ImageOps

from rsvp.intake.models import ImageFile, Preview
from rsvp.logging.logger import Log


def raw_data_url(image: ImageFile) -> str:
    """Data URL of the untouched bytes, for viewers that decode it themselves."""
    encoded = base64.b64encode(image.data).decode("ascii")
    return f"data:{image.content_type or 'application/octet-stream'};base64,{encoded}"


class PreviewRenderer:
    """Builds thumbnails within a time budget and always resolves.

    Decode and redraw run in a worker thread. When that step times out or
    fails, the preview falls back to the raw bytes; non-images get no preview.
    """

    def __init__(self, timeout_seconds: float = 1.5, max_edge_px: int = 320) -> None:
        self._timeout_seconds = timeout_seconds
        self._max_edge_px = max_edge_px

    async def render(self, image: ImageFile) -> Preview:
        if not image.is_image or not image.data:
            return Preview.none()
        try:
            data_url = await asyncio.wait_for(
                asyncio.to_thread(self._redraw, image.data),
                timeout=self._timeout_seconds,
            )
        except TimeoutError:
            Log.warning(f"Preview of {image.filename} timed out, using raw bytes")
            return Preview(kind="raw", data_url=raw_data_url(image))
        except Exception as exc:
            Log.warning(f"Preview of {image.filename} failed ({exc}), using raw bytes")
            return Preview(kind="raw", data_url=raw_data_url(image))
        return Preview(kind="rendered", data_url=data_url)

    def _redraw(self, data: bytes) -> str:
        with Image.open(io.BytesIO(data)) as opened:
            picture = ImageOps.exif_transpose(opened).convert("RGB")
        picture.thumbnail((self._max_edge_px, self._max_edge_px))
        buf = io.BytesIO()
        picture.save(buf, format="JPEG", quality=80)
        encoded = base64.b64encode(buf.getvalue()).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"
