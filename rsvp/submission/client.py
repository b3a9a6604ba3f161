import httpx

from rsvp.config.settings import Settings
from rsvp.intake.session import RSVPSession
from rsvp.logging.logger import Log
from rsvp.submission.assembler import build_payload
from rsvp.submission.exceptions import (
    ApplicationFailure,
    LocalFailure,
    SubmissionError,
    TransportFailure,
)
from rsvp.submission.models import SubmissionPayload, SubmissionReceipt

SUBMIT_PATH = "/submit-rsvp"


class SubmissionClient:
    """Sends RSVP payloads to the intake server over httpx."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        transport_retries: int = 0,
        transport: httpx.BaseTransport | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._client = http_client or httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )
        self._transport_retries = max(0, transport_retries)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SubmissionClient":
        return cls(
            base_url=settings.submit_base_url,
            timeout_seconds=settings.submit_timeout_seconds,
            transport_retries=settings.submit_transport_retries,
        )

    def close(self) -> None:
        self._client.close()

    def submit(self, payload: SubmissionPayload) -> SubmissionReceipt:
        """POST the payload once (plus optional transport-only retries).

        Raises:
            TransportFailure: no response was received.
            ApplicationFailure: the server answered with a non-2xx status.
            LocalFailure: the request could not be built or decoded.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self._client.post(
                    SUBMIT_PATH,
                    data={"mainEmail": payload.main_email, "guests": payload.guests_json},
                    files=[
                        ("passports", (f.filename, f.data, f.content_type))
                        for f in payload.files
                    ],
                )
            except httpx.TransportError as exc:
                if attempt <= self._transport_retries:
                    Log.warning(f"Submission transport error, retry {attempt}: {exc}")
                    continue
                Log.error(f"Submission got no response: {exc}")
                raise TransportFailure(f"No response from server: {exc}") from exc
            except Exception as exc:
                Log.error(f"Submission request could not be sent: {exc}")
                raise LocalFailure(f"Could not send submission: {exc}") from exc
            break

        if not response.is_success:
            Log.error(f"Submission rejected: {response.status_code} {response.text}")
            raise ApplicationFailure(response.status_code, response.text)

        try:
            body = response.json()
            return SubmissionReceipt(guests=int(body["guests"]), images=int(body["images"]))
        except (ValueError, KeyError, TypeError) as exc:
            raise LocalFailure(f"Unreadable server response: {exc}") from exc


def submit_session(session: RSVPSession, client: SubmissionClient) -> SubmissionReceipt:
    """Snapshot, build, send; on success the assigned images become submitted."""
    try:
        payload = build_payload(session.snapshot())
    except SubmissionError:
        raise
    except Exception as exc:
        raise LocalFailure(f"Could not build submission: {exc}") from exc

    receipt = client.submit(payload)
    submitted = session.queue.mark_submitted()
    Log.info(
        f"Submitted RSVP for {payload.main_email}: "
        f"{receipt.guests} guests, {receipt.images} images ({submitted} marked submitted)"
    )
    return receipt
