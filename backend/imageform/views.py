"""HTML rendering for the form page and the submitted-data list."""

from datetime import datetime
from html import escape
from typing import Dict, List, Optional

from imageform.schemas import Notification, Submission
from imageform.services.submissions import FETCH_ERROR_MESSAGE, FeedState

PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Image Upload Form</title>
</head>
<body>
{notice}
<section class="card">
  <h2>Image Upload Form</h2>
  <form action="/" method="post" enctype="multipart/form-data"
        onsubmit="var b = this.querySelector('button[type=submit]'); b.disabled = true; b.textContent = 'Submitting...';">
    <label>Title
      <input type="text" name="title" placeholder="Enter title" value="{title}">
    </label>
    {title_error}
    <label>Description
      <textarea name="description" placeholder="Enter description">{description}</textarea>
    </label>
    {description_error}
    <label>Single Image
      <input type="file" name="single_image" accept="image/*">
    </label>
    <p class="hint">Upload a single image</p>
    <label>Multiple Images
      <input type="file" name="multiple_images" accept="image/*" multiple>
    </label>
    <p class="hint">Upload multiple images</p>
    <button type="submit">Submit</button>
  </form>
</section>
<section class="card">
  <h2>Submitted Data</h2>
{submissions}
</section>
</body>
</html>
"""


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%m/%d/%Y, %I:%M:%S %p")


def render_notice(notification: Optional[Notification]) -> str:
    if notification is None:
        return ""
    return f'<div class="toast toast-{escape(notification.kind)}" role="status">{escape(notification.message)}</div>'


def render_submission(submission: Submission) -> str:
    parts = [
        '<article class="submission">',
        f"<h3>{escape(submission.title)}</h3>",
        f"<p>{escape(submission.description)}</p>",
    ]
    if submission.single_image_url:
        parts.append("<h4>Single Image:</h4>")
        parts.append(f'<img src="{escape(submission.single_image_url)}" alt="Single uploaded image">')
    if submission.multiple_image_urls:
        parts.append("<h4>Multiple Images:</h4>")
        parts.append('<div class="grid">')
        for index, url in enumerate(submission.multiple_image_urls, start=1):
            parts.append(f'<img src="{escape(url)}" alt="Uploaded image {index}">')
        parts.append("</div>")
    parts.append(f'<p class="meta">Submitted on: {format_timestamp(submission.created_at)}</p>')
    parts.append("</article>")
    return "\n".join(parts)


def render_submissions(state: FeedState, submissions: List[Submission]) -> str:
    if state == FeedState.LOADING:
        return "<p>Loading...</p>"
    if state == FeedState.ERROR:
        return f"<p>{FETCH_ERROR_MESSAGE}</p>"
    if not submissions:
        return "<p>No submissions yet</p>"
    return "\n".join(render_submission(submission) for submission in submissions)


def render_page(
    state: FeedState,
    submissions: List[Submission],
    values: Optional[Dict[str, str]] = None,
    errors: Optional[Dict[str, str]] = None,
    notification: Optional[Notification] = None,
) -> str:
    values = values or {}
    errors = errors or {}

    def field_error(name: str) -> str:
        if name not in errors:
            return ""
        return f'<p class="error">{escape(errors[name])}</p>'

    return PAGE.format(
        notice=render_notice(notification),
        title=escape(values.get("title", "")),
        description=escape(values.get("description", "")),
        title_error=field_error("title"),
        description_error=field_error("description"),
        submissions=render_submissions(state, submissions),
    )
