from collections.abc import Sequence

from rsvp.config.settings import Settings
from rsvp.logging.logger import Log
from rsvp.persistence.guest_store import GuestStore
from rsvp.persistence.image_store import ImageStore
from rsvp.persistence.models import SubmissionResult, UploadedImage
from rsvp.persistence.pipeline import SubmissionContext, SubmissionStep
from rsvp.persistence.steps import (
    AppendRowsStep,
    BuildRowsStep,
    SaveImagesStep,
    ValidateSubmissionStep,
)


class PersistenceEngine:
    """Stores one RSVP submission.

    Pipeline: validate -> save images -> build rows -> append to store.
    """

    def __init__(self, steps: Sequence[SubmissionStep]) -> None:
        self._steps = list(steps)

    def handle_submission(
        self,
        main_email: str,
        guests_json: str,
        files: Sequence[UploadedImage] = (),
    ) -> SubmissionResult:
        """Run the pipeline for one request.

        Raises:
            SubmissionValidationError: missing main email or guests.
            ImageWriteError: an image could not be saved.
            StoreReadError, StoreWriteError: the guest store could not be updated.
        """
        context = SubmissionContext(
            main_email=main_email,
            guests_json=guests_json,
            uploads=tuple(files),
        )
        for step in self._steps:
            context = step.run(context)

        Log.info(
            "Stored RSVP",
            main_email=context.main_email,
            guests=len(context.rows),
            images=len(context.uploads),
            store_rows=context.total_rows,
        )
        return SubmissionResult(created_count=len(context.rows), image_count=len(context.uploads))


def build_engine(settings: Settings) -> PersistenceEngine:
    """Build a PersistenceEngine wired to the configured data directory."""
    settings.passport_dir.mkdir(parents=True, exist_ok=True)
    image_store = ImageStore(settings.passport_dir, settings.image_collision_policy)
    guest_store = GuestStore(
        settings.store_path,
        sheet_name=settings.store_sheet_name,
        write_retries=settings.store_write_retries,
        retry_delay_seconds=settings.store_write_retry_delay_seconds,
    )
    return PersistenceEngine(
        steps=[
            ValidateSubmissionStep(),
            SaveImagesStep(image_store),
            BuildRowsStep(),
            AppendRowsStep(guest_store),
        ]
    )
