"""
Digest Renderer Service

Formats an aggregated digest as plain text (console / no-delivery mode) or as
HTML for the email body. Both renderings carry the same entries.
"""
from html import escape

from tvnotifier.services.fetch_types import DigestResult, QualifyingMovie, ShowEvent
from tvnotifier.utils.timezone import format_day, format_show_time


TVMAZE_SHOW_URL = "https://www.tvmaze.com/shows/{}"
TODAY_HEADING = "Today's shows:"
FUTURE_HEADING = "Future shows:"
MOVIES_HEADING = "Movies:"
NOTHING_TODAY = "Nothing airing today."
FAILURES_PREFIX = "Could not fetch: "
FOOTER_TEXT = "Manage subscriptions on TV Notifier UI"


def render_subject(digest: DigestResult) -> str:
    return f"Upcoming shows for {format_day(digest.today)}"


def format_show(show: ShowEvent) -> str:
    return f"{format_show_time(show.air_time)}: {show.name} ({show.episode_name})"


def format_movie(movie: QualifyingMovie) -> str:
    return f"{movie.title} available on {', '.join(sorted(movie.platforms))}"


def format_failures(digest: DigestResult) -> str:
    """One line naming the identifiers missing from a partial digest, e.g. 'show 3, movie 10'"""
    return FAILURES_PREFIX + ", ".join(f"{failure.kind} {failure.identifier}" for failure in digest.failures)


def render_text(digest: DigestResult, site_url: str | None = None) -> str:
    """
    Render the digest as plain text

    Args:
        digest: Aggregated, date-filtered digest
        site_url: Subscription management page named in the footer

    Returns:
        Text with a today section, then future shows, movies, fetch failures
        and the footer when present
    """
    lines = [TODAY_HEADING]
    today_shows = digest.today_shows
    if today_shows:
        lines.extend(format_show(show) for show in today_shows)
    else:
        lines.append(NOTHING_TODAY)

    future_shows = digest.future_shows
    if future_shows:
        lines.append("")
        lines.append(FUTURE_HEADING)
        lines.extend(format_show(show) for show in future_shows)

    if digest.movies:
        lines.append("")
        lines.append(MOVIES_HEADING)
        lines.extend(format_movie(movie) for movie in digest.movies)

    if digest.failures:
        lines.append("")
        lines.append(format_failures(digest))

    if site_url:
        lines.append("")
        lines.append(f"{FOOTER_TEXT}: {site_url}")

    return "\n".join(lines) + "\n"


def _show_html(show: ShowEvent) -> str:
    link = TVMAZE_SHOW_URL.format(show.show_id)
    return (
        f"{escape(format_show_time(show.air_time))}: "
        f"<a href=\"{link}\">{escape(show.name)}</a> ({escape(show.episode_name)})"
    )


def render_html(digest: DigestResult, site_url: str | None = None) -> str:
    """
    Render the digest as a preformatted HTML email body

    Args:
        digest: Aggregated, date-filtered digest
        site_url: Subscription management page linked in the footer

    Returns:
        HTML fragment wrapped in <pre>
    """
    parts = [f"<pre><b>{TODAY_HEADING}<br />"]
    today_shows = digest.today_shows
    if today_shows:
        for show in today_shows:
            parts.append(_show_html(show))
            parts.append("<br />")
    else:
        parts.append(f"<i>{NOTHING_TODAY}</i>")
    parts.append("</b><br /><br />")

    future_shows = digest.future_shows
    if future_shows:
        parts.append(f"{FUTURE_HEADING}<br />")
        for show in future_shows:
            parts.append(_show_html(show))
            parts.append("<br />")

    if digest.movies:
        parts.append(f"<br />{MOVIES_HEADING}<br />")
        for movie in digest.movies:
            parts.append(escape(format_movie(movie)))
            parts.append("<br />")

    if digest.failures:
        parts.append(f"<br /><i>{escape(format_failures(digest))}</i><br />")

    if site_url:
        parts.append(
            f"<br /><br />Manage subscriptions on <a href=\"{escape(site_url)}\">TV Notifier UI</a>"
        )
    parts.append("</pre>")
    return "".join(parts)
