import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rsvp.config.settings import Settings
from rsvp.guests.models import AgeGroup, Allergy, Attendance, GuestRecord
from rsvp.intake.assignment import GuestImageAssigner
from rsvp.intake.models import ImageFile, ImageStatus
from rsvp.intake.session import build_session
from rsvp.persistence.guest_store import GuestStore
from rsvp.submission.client import SubmissionClient, submit_session
from rsvp.submission.exceptions import ApplicationFailure, PayloadBuildError

pytestmark = pytest.mark.integration


def _client(app: FastAPI) -> SubmissionClient:
    return SubmissionClient(base_url="", timeout_seconds=5, http_client=TestClient(app))


class TestSessionToStore:
    def test_assigned_image_reaches_store(
        self, app: FastAPI, settings: Settings, jpeg_bytes: bytes, png_bytes: bytes
    ) -> None:
        session = build_session(settings, main_email=" host@x.com ")
        session.update_guest(
            0,
            first_name="Dana",
            last_name="Levi",
            age_group=AgeGroup.ADULT,
            attendance=Attendance.YES,
            allergies=frozenset({Allergy.GLUTEN}),
        )
        session.add_guest(GuestRecord(first_name="Noam", last_name="Cohen"))
        items = asyncio.run(
            session.queue.enqueue(
                [
                    ImageFile("IMG_0001.JPG", "image/jpeg", jpeg_bytes),
                    ImageFile("scan.png", "image/png", png_bytes),
                ]
            )
        )
        by_name = {item.file.filename: item for item in items}
        assigner = GuestImageAssigner(session)
        assigner.assign(by_name["IMG_0001.JPG"].id, 0)
        assigner.assign(by_name["scan.png"].id, 1)

        receipt = submit_session(session, _client(app))

        assert (receipt.guests, receipt.images) == (2, 2)
        assert all(item.status is ImageStatus.SUBMITTED for item in session.queue.items)
        assert (settings.passport_dir / "dana_levi_1.jpg").read_bytes() == jpeg_bytes
        assert (settings.passport_dir / "noam_cohen_2.png").read_bytes() == png_bytes
        frame = GuestStore(settings.store_path).load()
        assert list(frame["guest_id"]) == ["host@x.com_1", "host@x.com_2"]
        assert list(frame["passport"]) == ["yes", "yes"]
        assert frame.loc[0, "allergies"] == "gluten"

    def test_guest_renamed_after_assignment(
        self, app: FastAPI, settings: Settings, jpeg_bytes: bytes
    ) -> None:
        session = build_session(settings, main_email="host@x.com")
        session.update_guest(0, first_name="Dana", last_name="Levi")
        (item,) = asyncio.run(
            session.queue.enqueue([ImageFile("a.jpg", "image/jpeg", jpeg_bytes)])
        )
        GuestImageAssigner(session).assign(item.id, 0)
        session.update_guest(0, last_name="Cohen")

        submit_session(session, _client(app))

        assert (settings.passport_dir / "dana_cohen_1.jpg").exists()
        assert GuestStore(settings.store_path).load().loc[0, "passport"] == "yes"

    def test_unassigned_image_blocks_submission(
        self, app: FastAPI, settings: Settings, jpeg_bytes: bytes
    ) -> None:
        session = build_session(settings, main_email="host@x.com")
        session.update_guest(0, first_name="Dana")
        asyncio.run(session.queue.enqueue([ImageFile("a.jpg", "image/jpeg", jpeg_bytes)]))

        with pytest.raises(PayloadBuildError):
            submit_session(session, _client(app))

        assert not settings.store_path.exists()
        assert session.queue.items[0].status is ImageStatus.QUEUED

    def test_server_rejection_keeps_images_assigned(
        self, app: FastAPI, settings: Settings, jpeg_bytes: bytes
    ) -> None:
        session = build_session(settings, main_email="")
        session.update_guest(0, first_name="Dana")
        (item,) = asyncio.run(
            session.queue.enqueue([ImageFile("a.jpg", "image/jpeg", jpeg_bytes)])
        )
        GuestImageAssigner(session).assign(item.id, 0)

        with pytest.raises(ApplicationFailure) as exc_info:
            submit_session(session, _client(app))

        assert exc_info.value.status_code == 400
        assert item.status is ImageStatus.ASSIGNED

    @pytest.mark.parametrize("first_name", ["a" * 200, "ד" * 140])
    def test_long_names_keep_passport_match(
        self, app: FastAPI, settings: Settings, jpeg_bytes: bytes, first_name: str
    ) -> None:
        session = build_session(settings, main_email="host@x.com")
        session.update_guest(0, first_name=first_name, last_name="Levi")
        (item,) = asyncio.run(
            session.queue.enqueue([ImageFile("a.jpg", "image/jpeg", jpeg_bytes)])
        )
        GuestImageAssigner(session).assign(item.id, 0)

        receipt = submit_session(session, _client(app))

        assert receipt.images == 1
        (stored,) = settings.passport_dir.iterdir()
        assert stored.name == item.file.filename
        assert len(stored.name.encode("utf-8")) < 255
        assert GuestStore(settings.store_path).load().loc[0, "passport"] == "yes"
