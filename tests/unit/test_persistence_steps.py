import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from rsvp.persistence.exceptions import SubmissionValidationError
from rsvp.persistence.guest_store import GuestStore
from rsvp.persistence.image_store import ImageStore
from rsvp.persistence.models import PersistedGuestRow, UploadedImage
from rsvp.persistence.pipeline import SubmissionContext
from rsvp.persistence.steps import (
    AppendRowsStep,
    BuildRowsStep,
    SaveImagesStep,
    ValidateSubmissionStep,
)


def _guests_json(*guests: dict) -> str:
    return json.dumps(list(guests))


def _guest(first: str = "Dana", last: str = "Levi", **extra: object) -> dict:
    return {"firstName": first, "middleName": "", "lastName": last, **extra}


def _validated(main_email: str, *guests: dict) -> SubmissionContext:
    context = SubmissionContext(main_email=main_email, guests_json=_guests_json(*guests))
    return ValidateSubmissionStep().run(context)


class TestValidateSubmissionStep:
    def test_strips_main_email_and_parses_guests(self) -> None:
        context = _validated("  a@b.com ", _guest())

        assert context.main_email == "a@b.com"
        assert [g.first_name for g in context.guests] == ["Dana"]

    @pytest.mark.parametrize("email", ["", "   "])
    def test_missing_main_email(self, email: str) -> None:
        with pytest.raises(SubmissionValidationError, match="mainEmail"):
            _validated(email, _guest())

    def test_empty_guest_list(self) -> None:
        with pytest.raises(SubmissionValidationError, match="At least one guest"):
            _validated("a@b.com")

    def test_malformed_guests_json(self) -> None:
        context = SubmissionContext(main_email="a@b.com", guests_json="{not json")

        with pytest.raises(SubmissionValidationError, match="Invalid guests JSON"):
            ValidateSubmissionStep().run(context)

    def test_unknown_enum_value(self) -> None:
        with pytest.raises(SubmissionValidationError, match="attendance"):
            _validated("a@b.com", _guest(attendance="perhaps"))


class TestSaveImagesStep:
    def test_records_received_stems(self, tmp_path: Path) -> None:
        context = _validated("a@b.com", _guest())
        context.uploads = (
            UploadedImage("Dana_Levi_1.JPG", "image/jpeg", b"one"),
            UploadedImage("other.png", "image/png", b"two"),
        )

        context = SaveImagesStep(ImageStore(tmp_path)).run(context)

        assert context.received_stems == {"dana_levi_1", "other"}
        assert [s.stored_path.name for s in context.saved_images] == [
            "Dana_Levi_1.JPG",
            "other.png",
        ]
        assert (tmp_path / "Dana_Levi_1.JPG").read_bytes() == b"one"

    def test_no_uploads_is_a_noop(self) -> None:
        image_store = MagicMock(spec=ImageStore)
        context = _validated("a@b.com", _guest())

        context = SaveImagesStep(image_store).run(context)

        image_store.save.assert_not_called()
        assert context.saved_images == []


class TestBuildRowsStep:
    def test_row_fields(self) -> None:
        context = _validated(
            "a@b.com",
            _guest(
                email="dana@x.com",
                ageGroup="adult",
                attendance="yes",
                allergies=["vegan", "nuts"],
                otherAllergy="kiwi",
            ),
        )

        row = BuildRowsStep().run(context).rows[0]

        assert row == PersistedGuestRow(
            guest_id="a@b.com_1",
            main_email="a@b.com",
            guest_index=1,
            first_name="Dana",
            middle_name="",
            last_name="Levi",
            guest_email="dana@x.com",
            age_group="adult",
            attendance="yes",
            allergies="nuts, vegan",
            other_allergy="kiwi",
            passport="no",
        )

    def test_passport_follows_received_files_not_client_flag(self) -> None:
        context = _validated(
            "a@b.com",
            _guest("Dana", "Levi", passport="yes"),
            _guest("Noam", "Cohen", passport="no"),
        )
        context.received_stems = {"noam_cohen_2"}

        rows = BuildRowsStep().run(context).rows

        assert [r.passport for r in rows] == ["no", "yes"]

    def test_stem_must_carry_matching_position(self) -> None:
        context = _validated("a@b.com", _guest("Dana", "Levi"), _guest("Dana", "Levi"))
        context.received_stems = {"dana_levi_2"}

        rows = BuildRowsStep().run(context).rows

        assert [r.passport for r in rows] == ["no", "yes"]
        assert [r.guest_id for r in rows] == ["a@b.com_1", "a@b.com_2"]

    def test_empty_choices_become_empty_cells(self) -> None:
        context = _validated("a@b.com", _guest())

        row = BuildRowsStep().run(context).rows[0]

        assert row.age_group == ""
        assert row.attendance == ""
        assert row.allergies == ""

    def test_worksheet_illegal_characters_removed(self) -> None:
        context = _validated(
            "a\x01@b.com",
            _guest("Da\x00na", "Levi", otherAllergy="pea\x0bnuts", email="d\x1b@x.com"),
        )

        row = BuildRowsStep().run(context).rows[0]

        assert row.other_allergy == "peanuts"
        assert row.first_name == "Dana"
        assert row.guest_email == "d@x.com"
        assert row.guest_id == "a@b.com_1"

    def test_tabs_and_newlines_kept(self) -> None:
        context = _validated("a@b.com", _guest(otherAllergy="kiwi\nmango\tlime"))

        row = BuildRowsStep().run(context).rows[0]

        assert row.other_allergy == "kiwi\nmango\tlime"


class TestAppendRowsStep:
    def test_appends_rows_and_records_total(self) -> None:
        guest_store = MagicMock(spec=GuestStore)
        guest_store.append.return_value = 7
        context = BuildRowsStep().run(_validated("a@b.com", _guest()))

        context = AppendRowsStep(guest_store).run(context)

        guest_store.append.assert_called_once_with(context.rows)
        assert context.total_rows == 7
