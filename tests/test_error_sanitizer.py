from services.error_sanitizer import sanitize_public_error_message


def test_passes_plain_message_through():
    assert (
        sanitize_public_error_message("Analysis call timed out after 120s", fallback="x")
        == "Analysis call timed out after 120s"
    )


def test_empty_message_is_none():
    assert sanitize_public_error_message("", fallback="x") is None
    assert sanitize_public_error_message("   ", fallback="x") is None


def test_traceback_falls_back():
    message = 'Traceback (most recent call last):\n  File "/root/app/services/render.py", line 3'
    assert sanitize_public_error_message(message, fallback="Request failed.") == "Request failed."


def test_masks_api_keys():
    message = "400 Bad Request for url https://generativelanguage.googleapis.com/v1?key=AIzaSyD-abcdefghijklmnopqrstuvwx"
    safe = sanitize_public_error_message(message, fallback="x")

    assert "AIza" not in safe
    assert "key=***" in safe


def test_truncates_long_messages():
    safe = sanitize_public_error_message("a" * 500, fallback="x", max_chars=50)
    assert len(safe) == 51
    assert safe.endswith("…")
