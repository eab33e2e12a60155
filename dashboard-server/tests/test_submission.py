import asyncio
import json

import httpx
import pytest

from gateway_dashboard.core.exceptions import MalformedInputError, SubmissionInProgress
from gateway_dashboard.models.messages import SubmissionOutcome, SubmissionRequest
from gateway_dashboard.services.credentials import CredentialStore
from gateway_dashboard.services.submission import SubmissionHandler, format_json_value


def _form(**kw):
    base = {"topic": "orders.v1", "key": "user-1", "value": '{"a": 1}'}
    base.update(kw)
    return SubmissionRequest(**base)


async def test_successful_submission_posts_message_and_resets_form(handler, credentials, surface, fake):
    credentials.set("secret-key")

    result = await handler.submit(_form())

    assert result.outcome is SubmissionOutcome.SENT
    assert result.notification.level == "success"
    assert result.notification.message == "Message sent successfully to topic: orders.v1"

    (req,) = fake.calls("POST", "/message")
    assert req.headers["Authorization"] == "Bearer secret-key"
    assert json.loads(req.content) == {
        "topic": "orders.v1", "key": "user-1", "value": '{"a": 1}', "headers": {},
    }

    form = surface.snapshot().form
    assert (form.topic, form.key, form.value) == ("", "", "")
    assert form.submitEnabled
    assert surface.snapshot().lastNotification == result.notification


async def test_supplied_key_is_persisted_and_not_asked_again(handler, credentials, fake):
    first = await handler.submit(_form(apiKey="operator-key"))
    assert first.outcome is SubmissionOutcome.SENT
    assert credentials.get() == "operator-key"

    second = await handler.submit(_form())
    assert second.outcome is SubmissionOutcome.SENT
    assert [r.headers["Authorization"] for r in fake.calls("POST", "/message")] == [
        "Bearer operator-key",
        "Bearer operator-key",
    ]


async def test_cached_key_wins_over_supplied(handler, credentials, fake):
    credentials.set("cached")
    await handler.submit(_form(apiKey="other"))
    assert fake.calls("POST", "/message")[0].headers["Authorization"] == "Bearer cached"
    assert credentials.get() == "cached"


@pytest.mark.parametrize("supplied", [None, "", "   "])
async def test_missing_credential_asks_caller(handler, surface, fake, supplied):
    result = await handler.submit(_form(apiKey=supplied))

    assert result.outcome is SubmissionOutcome.CREDENTIAL_REQUIRED
    assert fake.calls("POST", "/message") == []
    form = surface.snapshot().form
    assert form.submitEnabled
    assert form.topic == "orders.v1"


async def test_anonymous_submission_sends_without_bearer(handler, credentials, fake):
    fake.reply("POST", "/message", status=401, body={"error": "Missing API key"})

    result = await handler.submit(_form(allowAnonymous=True))

    (req,) = fake.calls("POST", "/message")
    assert "Authorization" not in req.headers
    assert result.outcome is SubmissionOutcome.FAILED
    assert result.statusCode == 401
    assert result.notification.message == "Error sending message: Missing API key"
    assert credentials.get() is None


async def test_error_without_message_falls_back_to_status(handler, credentials, fake):
    credentials.set("k")
    fake.reply("POST", "/message", status=500, content=b"")

    result = await handler.submit(_form())

    assert result.outcome is SubmissionOutcome.FAILED
    assert result.notification.message == "Error sending message: HTTP error! status: 500"


async def test_failure_preserves_form(handler, credentials, surface, fake):
    credentials.set("k")
    fake.reply("POST", "/message", status=400, body={"error": "Invalid topic"})

    await handler.submit(_form(topic="bad topic"))

    form = surface.snapshot().form
    assert (form.topic, form.key, form.value) == ("bad topic", "user-1", '{"a": 1}')
    assert surface.snapshot().lastNotification.level == "error"


@pytest.mark.parametrize("outcome", ["2xx", "4xx", "5xx", "network"])
async def test_submit_control_is_always_reenabled(handler, credentials, surface, fake, outcome):
    credentials.set("k")
    if outcome == "4xx":
        fake.reply("POST", "/message", status=403, body={"error": "forbidden"})
    elif outcome == "5xx":
        fake.reply("POST", "/message", status=502, body={})
    elif outcome == "network":
        fake.fail("POST", "/message")

    result = await handler.submit(_form())

    assert surface.snapshot().form.submitEnabled
    assert not handler.submitting
    expected = SubmissionOutcome.SENT if outcome == "2xx" else SubmissionOutcome.FAILED
    assert result.outcome is expected


async def test_unexpected_send_error_becomes_notification(handler, credentials, surface, gateway, monkeypatch):
    credentials.set("k")

    async def _explode(msg, api_key):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(gateway, "send_message", _explode)
    result = await handler.submit(_form())

    assert result.outcome is SubmissionOutcome.FAILED
    assert result.notification.message == "Error sending message: unexpected"
    assert surface.snapshot().lastNotification == result.notification
    assert surface.snapshot().form.submitEnabled
    assert surface.snapshot().form.topic == "orders.v1"
    assert not handler.submitting
    assert handler.stats["failed"] == 1


async def test_unwritable_credential_file_becomes_notification(gateway, surface, tmp_path, fake):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    handler = SubmissionHandler(gateway, CredentialStore(blocker / "creds.json", "k"), surface)

    result = await handler.submit(_form(apiKey="abc"))

    assert result.outcome is SubmissionOutcome.FAILED
    assert result.notification.level == "error"
    assert result.notification.message.startswith("Error sending message: ")
    assert fake.calls("POST", "/message") == []
    assert surface.snapshot().form.submitEnabled


async def test_second_submit_rejected_while_in_flight(handler, credentials, surface, fake):
    credentials.set("k")
    release = asyncio.Event()

    async def _slow(request):
        await release.wait()
        return httpx.Response(200, json={})

    fake.route("POST", "/message", _slow)

    first = asyncio.create_task(handler.submit(_form()))
    await asyncio.sleep(0.01)
    assert handler.submitting
    assert not surface.snapshot().form.submitEnabled

    with pytest.raises(SubmissionInProgress):
        await handler.submit(_form(topic="other"))

    release.set()
    assert (await first).outcome is SubmissionOutcome.SENT
    assert len(fake.calls("POST", "/message")) == 1
    assert surface.snapshot().form.submitEnabled


async def test_stats_count_outcomes(handler, credentials, fake):
    await handler.submit(_form())
    credentials.set("k")
    await handler.submit(_form())
    fake.reply("POST", "/message", status=500, body={"error": "down"})
    await handler.submit(_form())

    assert handler.stats == {"credential_required": 1, "sent": 1, "failed": 1}


def test_format_json_value_pretty_prints():
    assert format_json_value('{"a":1,"b":[1,2]}') == '{\n  "a": 1,\n  "b": [\n    1,\n    2\n  ]\n}'


def test_format_json_value_keeps_unicode():
    assert format_json_value('"привет"') == '"привет"'


@pytest.mark.parametrize("blank", ["", "   ", "\n"])
def test_format_json_value_blank_is_untouched(blank):
    assert format_json_value(blank) == blank


def test_format_json_value_rejects_invalid_json():
    with pytest.raises(MalformedInputError, match="Invalid JSON"):
        format_json_value("{not json")
