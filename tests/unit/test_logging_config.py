"""Unit tests for the query-layer log processors."""

from query_layer.logging_config import add_app_context, format_request_keys


def test_request_keys_rendered_as_paths():
    event = format_request_keys(
        None,
        "info",
        {"event": "Invalidated", "key": ("jobs", 42), "prefix": ("jobs",), "other": (1, 2)},
    )

    assert event["key"] == "jobs/42"
    assert event["prefix"] == "jobs"
    assert event["other"] == (1, 2)


def test_missing_or_plain_keys_untouched():
    event = format_request_keys(None, "info", {"event": "Started", "key": None})

    assert event == {"event": "Started", "key": None}


def test_app_context_added():
    assert add_app_context(None, "info", {"event": "x"})["app"] == "query-layer"
