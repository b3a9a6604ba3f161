import asyncio
from collections.abc import Callable, Sequence

from rsvp.intake.compression import BaseImageCompressor
from rsvp.intake.exceptions import CompressionError, QueueCapacityError
from rsvp.intake.models import ImageFile, ImageStatus, PassportImage
from rsvp.intake.preview import PreviewRenderer
from rsvp.logging.logger import Log


class ImageIntakeQueue:
    """Holds selected passport images until they are assigned and submitted.

    A batch is admitted whole or not at all. Its files are then processed
    concurrently (compression, preview) and each one enters the queue as
    soon as its own processing finishes.
    """

    def __init__(
        self,
        guest_count: Callable[[], int],
        compressor: BaseImageCompressor,
        preview_renderer: PreviewRenderer,
        compress_threshold_bytes: int,
        compress_target_bytes: int,
    ) -> None:
        self._guest_count = guest_count
        self._compressor = compressor
        self._previews = preview_renderer
        self._compress_threshold_bytes = compress_threshold_bytes
        self._compress_target_bytes = compress_target_bytes
        self._items: list[PassportImage] = []
        self._in_flight = 0

    @property
    def items(self) -> tuple[PassportImage, ...]:
        return tuple(self._items)

    @property
    def remaining_slots(self) -> int:
        return max(0, self._guest_count() - len(self._items) - self._in_flight)

    def get(self, image_id: str) -> PassportImage | None:
        return next((item for item in self._items if item.id == image_id), None)

    def holder_of(self, guest_index: int) -> PassportImage | None:
        return next((item for item in self._items if item.guest_index == guest_index), None)

    async def enqueue(
        self,
        files: Sequence[ImageFile],
        on_item_ready: Callable[[PassportImage], None] | None = None,
    ) -> list[PassportImage]:
        """Admit a batch and stream its items into the queue.

        Returns the admitted items in completion order.

        Raises:
            QueueCapacityError: if the batch exceeds the remaining slots;
                the queue is left unchanged.
        """
        remaining = self.remaining_slots
        if len(files) > remaining:
            Log.warning(f"Rejected batch of {len(files)} images, {remaining} slots remaining")
            raise QueueCapacityError(len(files), remaining)
        if not files:
            return []

        Log.info(f"Accepted batch of {len(files)} images")
        self._in_flight += len(files)
        tasks = [asyncio.create_task(self._process(f)) for f in files]
        ready: list[PassportImage] = []
        try:
            for next_done in asyncio.as_completed(tasks):
                item = await next_done
                self._in_flight -= 1
                self._items.append(item)
                ready.append(item)
                if on_item_ready is not None:
                    on_item_ready(item)
        finally:
            for task in tasks:
                task.cancel()
            self._in_flight -= len(files) - len(ready)
        return ready

    async def _process(self, image: ImageFile) -> PassportImage:
        if image.is_image and image.size > self._compress_threshold_bytes:
            image = await self._maybe_compress(image)
        preview = await self._previews.render(image)
        return PassportImage(file=image, preview=preview)

    async def _maybe_compress(self, image: ImageFile) -> ImageFile:
        try:
            compressed = await asyncio.to_thread(
                self._compressor.compress, image, self._compress_target_bytes
            )
        except CompressionError as exc:
            Log.warning(f"Keeping original {image.filename}: {exc}")
            return image
        Log.info(f"Compressed {image.filename} from {image.size} to {compressed.size} bytes")
        return compressed

    def remove_item(self, image_id: str) -> bool:
        """Remove a queued item. Assigned or submitted items stay put."""
        item = self.get(image_id)
        if item is None or item.status is not ImageStatus.QUEUED:
            Log.debug(f"Refused to remove image {image_id}")
            return False
        item.status = ImageStatus.REMOVED
        self._items.remove(item)
        return True

    def clear_queue(self) -> bool:
        """Remove every item, only while none has left the queued state."""
        if any(item.status is not ImageStatus.QUEUED for item in self._items):
            Log.debug("Refused to clear queue with assigned or submitted images")
            return False
        for item in self._items:
            item.status = ImageStatus.REMOVED
        self._items.clear()
        return True

    def mark_submitted(self) -> int:
        """Move every assigned item to its terminal submitted state."""
        submitted = 0
        for item in self._items:
            if item.status is ImageStatus.ASSIGNED:
                item.status = ImageStatus.SUBMITTED
                submitted += 1
        return submitted
