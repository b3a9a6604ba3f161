import json
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from rsvp.config.settings import Settings
from rsvp.persistence.guest_store import GuestStore

pytestmark = pytest.mark.integration


def _submit(app: FastAPI, main_email: str, guest_count: int) -> int:
    guests = [{"firstName": f"G{i}", "lastName": main_email[0]} for i in range(guest_count)]
    response = TestClient(app).post(
        "/submit-rsvp",
        data={"mainEmail": main_email, "guests": json.dumps(guests)},
    )
    return response.status_code


class TestConcurrentSubmissions:
    def test_every_row_survives(self, app: FastAPI, settings: Settings) -> None:
        jobs = [("a@x.com", 3), ("b@x.com", 2), ("c@x.com", 4), ("d@x.com", 1)] * 3

        with ThreadPoolExecutor(max_workers=6) as pool:
            statuses = list(pool.map(lambda job: _submit(app, *job), jobs))

        assert statuses == [200] * len(jobs)
        frame = GuestStore(settings.store_path).load()
        assert len(frame) == sum(n for _, n in jobs)
        for email, n in set(jobs):
            assert (frame["main_email"] == email).sum() == n * 3

    def test_rows_of_one_submission_are_contiguous(
        self, app: FastAPI, settings: Settings
    ) -> None:
        jobs = [(f"{c}@x.com", 5) for c in "abcdef"]

        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(lambda job: _submit(app, *job), jobs))

        emails = list(GuestStore(settings.store_path).load()["main_email"])
        for start in range(0, len(emails), 5):
            assert len(set(emails[start : start + 5])) == 1
