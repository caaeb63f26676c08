from datetime import date, datetime, timezone

from tvnotifier.services.delivery_service import html_to_plaintext
from tvnotifier.services.digest_renderer_service import (
    render_html,
    render_subject,
    render_text,
)
from tvnotifier.services.fetch_types import DigestResult, FetchFailure, QualifyingMovie, ShowEvent


TODAY = date(2026, 10, 18)


def _digest(shows=(), movies=(), failures=()) -> DigestResult:
    return DigestResult(
        generated_at=datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc),
        today=TODAY,
        shows=list(shows),
        movies=list(movies),
        failures=list(failures),
    )


TODAY_SHOW = ShowEvent(1, "Slow Horses", "Hello Goodbye", datetime(2026, 10, 18, 21, 0, tzinfo=timezone.utc))
TOMORROW_SHOW = ShowEvent(2, "Severance", "Cold Harbor", datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc))
LATER_SHOW = ShowEvent(3, "Andor", "One Way Out", datetime(2026, 10, 25, 9, 5, tzinfo=timezone.utc))
MOVIE = QualifyingMovie("Heat", frozenset({"netflix", "hulu"}))


def test_text_partitions_today_and_future() -> None:
    text = render_text(_digest([TODAY_SHOW, TOMORROW_SHOW, LATER_SHOW]))

    assert text == (
        "Today's shows:\n"
        "Sun. Oct. 18 9:00 PM: Slow Horses (Hello Goodbye)\n"
        "\n"
        "Future shows:\n"
        "Mon. Oct. 19 8:00 PM: Severance (Cold Harbor)\n"
        "Sun. Oct. 25 9:05 AM: Andor (One Way Out)\n"
    )


def test_text_placeholder_when_nothing_today_and_no_future_section() -> None:
    assert render_text(_digest()) == "Today's shows:\nNothing airing today.\n"


def test_text_lists_movies_with_sorted_platforms() -> None:
    text = render_text(_digest([TOMORROW_SHOW], [MOVIE]))

    assert text.endswith("Movies:\nHeat available on hulu, netflix\n")


def test_rendering_is_repeatable() -> None:
    digest = _digest([TODAY_SHOW, TOMORROW_SHOW], [MOVIE])

    assert render_text(digest) == render_text(digest)
    assert render_html(digest, "https://ui.test") == render_html(digest, "https://ui.test")


def test_html_links_shows_and_footer() -> None:
    html = render_html(_digest([TODAY_SHOW, TOMORROW_SHOW]), "https://ui.test")

    assert html.startswith("<pre><b>Today's shows:<br />")
    assert '<a href="https://www.tvmaze.com/shows/1">Slow Horses</a> (Hello Goodbye)' in html
    assert "Future shows:<br />Mon. Oct. 19 8:00 PM: " in html
    assert 'Manage subscriptions on <a href="https://ui.test">TV Notifier UI</a>' in html
    assert html.endswith("</pre>")


def test_html_placeholder_is_italic() -> None:
    html = render_html(_digest())

    assert "<i>Nothing airing today.</i>" in html
    assert "Future shows" not in html
    assert "Manage subscriptions" not in html


def test_html_escapes_api_text() -> None:
    show = ShowEvent(9, "Law & Order", "<Pilot>", datetime(2026, 10, 18, 21, 0, tzinfo=timezone.utc))

    html = render_html(_digest([show]))

    assert "Law &amp; Order</a> (&lt;Pilot&gt;)" in html


def test_html_and_text_carry_same_entries() -> None:
    digest = _digest([TODAY_SHOW, TOMORROW_SHOW, LATER_SHOW], [MOVIE])

    plain_from_html = html_to_plaintext(render_html(digest))

    for line in render_text(digest).splitlines():
        if line:
            assert line in plain_from_html


def test_subject_names_today() -> None:
    assert render_subject(_digest()) == "Upcoming shows for Sun. Oct. 18"


FAILURES = [FetchFailure("show", 3, "HTTPStatusError: 503"), FetchFailure("movie", 10, "ConnectError: down")]


def test_text_names_identifiers_that_could_not_be_fetched() -> None:
    text = render_text(_digest([TOMORROW_SHOW], [MOVIE], FAILURES))

    assert text.endswith(
        "Movies:\nHeat available on hulu, netflix\n\nCould not fetch: show 3, movie 10\n"
    )


def test_html_names_identifiers_that_could_not_be_fetched() -> None:
    html = render_html(_digest(failures=FAILURES), "https://ui.test")

    assert "<i>Could not fetch: show 3, movie 10</i>" in html
    assert html.index("Could not fetch") < html.index("Manage subscriptions")


def test_complete_digest_has_no_failure_line() -> None:
    digest = _digest([TODAY_SHOW])

    assert "Could not fetch" not in render_text(digest)
    assert "Could not fetch" not in render_html(digest)


def test_text_footer_names_management_page() -> None:
    text = render_text(_digest([TODAY_SHOW]), "https://ui.test")

    assert text.endswith("\n\nManage subscriptions on TV Notifier UI: https://ui.test\n")
    assert "Manage subscriptions" not in render_text(_digest([TODAY_SHOW]))


def test_html_and_text_carry_same_entries_with_failures_and_footer() -> None:
    digest = _digest([TODAY_SHOW, TOMORROW_SHOW], [MOVIE], FAILURES)

    plain_from_html = html_to_plaintext(render_html(digest, "https://ui.test"))
    text = render_text(digest, "https://ui.test")

    assert "Could not fetch: show 3, movie 10" in plain_from_html
    assert "Manage subscriptions on TV Notifier UI" in plain_from_html
    for line in text.splitlines():
        if line and not line.startswith("Manage subscriptions"):
            assert line in plain_from_html
