"""Email templates for CourseMaster.

Every template renders to an ``(html, plain_text)`` pair. HTML content is
wrapped in ``BASE_TEMPLATE``; user-provided values are escaped.

Palette:
- Primary: #667EEA
- Success: #00C49F
- Highlight: #FF8042
- Text: #1A1D23
- Muted: #8E959E
"""

from datetime import UTC, datetime
from html import escape


# ==============================================================================
# Base Template
# ==============================================================================

BASE_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title} - CourseMaster</title>
</head>
<body style="margin: 0; padding: 0; background-color: #FAFBFC; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif;">
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background-color: #FAFBFC;">
    <tr>
      <td align="center" style="padding: 40px 20px;">
        <table role="presentation" width="600" cellpadding="0" cellspacing="0" style="background-color: #FFFFFF; border-radius: 12px; max-width: 600px;">
          <!-- Header -->
          <tr>
            <td style="padding: 30px 40px; text-align: center; background-color: {accent}; border-radius: 12px 12px 0 0;">
              <h1 style="margin: 0; font-size: 26px; font-weight: 700; color: #FFFFFF;">
                {title}
              </h1>
            </td>
          </tr>

          <!-- Content -->
          <tr>
            <td style="padding: 40px;">
              {content}
            </td>
          </tr>

          <!-- Footer -->
          <tr>
            <td style="padding: 24px 40px; background-color: #F9FAFB; border-top: 1px solid #E5E7EB; border-radius: 0 0 12px 12px;">
              <p style="margin: 0; font-size: 12px; color: #8E959E; text-align: center; line-height: 1.6;">
                This is an automated email. Please do not reply to this message.<br>
                &copy; {year} CourseMaster. All rights reserved.
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""

PLAIN_TEXT_FOOTER = """
---
This is an automated email. Please do not reply to this message.
© {year} CourseMaster. All rights reserved.
"""

BUTTON = """
<div style="text-align: center; margin: 30px 0;">
  <a href="{url}" style="background: {accent}; color: #FFFFFF; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 600;">
    {label}
  </a>
</div>
"""


def _wrap(title: str, content: str, accent: str) -> str:
    return BASE_TEMPLATE.format(
        title=title,
        content=content,
        accent=accent,
        year=datetime.now(UTC).year,
    )


def _footer() -> str:
    return PLAIN_TEXT_FOOTER.format(year=datetime.now(UTC).year)


# ==============================================================================
# Template: Enrollment Confirmation
# ==============================================================================

ENROLLMENT_CONTENT = """
<p style="margin: 0 0 16px; font-size: 16px; color: #1A1D23;">Hi {user_name},</p>
<p style="margin: 0 0 16px; font-size: 16px; color: #4B5563; line-height: 1.6;">
  Congratulations! You've successfully enrolled in <strong>{course_title}</strong>.
</p>
<p style="margin: 0 0 16px; font-size: 16px; color: #4B5563; line-height: 1.6;">
  You can now start learning at your own pace and track your progress lesson by lesson.
</p>
{button}
<p style="margin: 24px 0 0; font-size: 14px; color: #6B7280;">
  Happy learning!<br>The CourseMaster Team
</p>
"""


def render_enrollment(
    user_name: str, course_title: str, course_url: str
) -> tuple[str, str]:
    """Render enrollment confirmation email.

    Args:
        user_name: Student's display name
        course_title: Course the student enrolled in
        course_url: Link to start learning

    Returns:
        Tuple of (html_content, plain_text_content)
    """
    accent = "#667EEA"
    content = ENROLLMENT_CONTENT.format(
        user_name=escape(user_name),
        course_title=escape(course_title),
        button=BUTTON.format(url=escape(course_url), accent=accent, label="Start Learning"),
    )
    html = _wrap("You're Enrolled!", content, accent)

    plain_text = f"""
Hi {user_name},

Congratulations! You've successfully enrolled in {course_title}.

Start learning: {course_url}

Happy learning!
The CourseMaster Team
{_footer()}"""
    return html, plain_text.strip()


# ==============================================================================
# Template: Course Completion
# ==============================================================================

COURSE_COMPLETION_CONTENT = """
<p style="margin: 0 0 16px; font-size: 16px; color: #1A1D23;">Hi {user_name},</p>
<p style="margin: 0 0 16px; font-size: 16px; color: #4B5563; line-height: 1.6;">
  Amazing work! You've successfully completed <strong>{course_title}</strong>.
</p>
<p style="margin: 0 0 16px; font-size: 16px; color: #4B5563; line-height: 1.6;">
  Your dedication has paid off. Keep up the excellent progress!
</p>
{button}
"""


def render_course_completion(
    user_name: str, course_title: str, course_url: str
) -> tuple[str, str]:
    """Render course completion email."""
    accent = "#00C49F"
    content = COURSE_COMPLETION_CONTENT.format(
        user_name=escape(user_name),
        course_title=escape(course_title),
        button=BUTTON.format(url=escape(course_url), accent=accent, label="View Course"),
    )
    html = _wrap("Course Completed!", content, accent)

    plain_text = f"""
Hi {user_name},

Amazing work! You've successfully completed {course_title}.

View the course: {course_url}
{_footer()}"""
    return html, plain_text.strip()


# ==============================================================================
# Template: Assignment Graded
# ==============================================================================

ASSIGNMENT_GRADED_CONTENT = """
<p style="margin: 0 0 16px; font-size: 16px; color: #1A1D23;">Hi {user_name},</p>
<p style="margin: 0 0 16px; font-size: 16px; color: #4B5563; line-height: 1.6;">
  Your assignment <strong>"{assignment_title}"</strong> for the course
  <strong>{course_title}</strong> has been graded.
</p>
<div style="background-color: #F9FAFB; border-radius: 12px; padding: 20px; margin: 24px 0; text-align: center;">
  <p style="margin: 0; font-size: 24px; font-weight: 700; color: #667EEA;">
    Score: {score} / {max_score}
  </p>
  <p style="margin: 10px 0 0; font-size: 18px; color: #6B7280;">{percentage}%</p>
</div>
<p style="margin: 24px 0 0; font-size: 14px; color: #6B7280;">
  Check your dashboard to view detailed feedback.<br>The CourseMaster Team
</p>
"""


def render_assignment_graded(
    user_name: str,
    course_title: str,
    assignment_title: str,
    score: float,
    max_score: float,
    percentage: int,
) -> tuple[str, str]:
    """Render assignment graded email.

    Args:
        user_name: Student's display name
        course_title: Course owning the assignment
        assignment_title: Assignment name
        score: Awarded score
        max_score: Maximum score of the assignment
        percentage: Rounded integer percentage of score over max_score

    Returns:
        Tuple of (html_content, plain_text_content)
    """
    content = ASSIGNMENT_GRADED_CONTENT.format(
        user_name=escape(user_name),
        course_title=escape(course_title),
        assignment_title=escape(assignment_title),
        score=f"{score:g}",
        max_score=f"{max_score:g}",
        percentage=percentage,
    )
    html = _wrap("Assignment Graded", content, "#FF8042")

    plain_text = f"""
Hi {user_name},

Your assignment "{assignment_title}" for the course {course_title} has been graded.

Score: {score:g} / {max_score:g} ({percentage}%)

Check your dashboard to view detailed feedback.
{_footer()}"""
    return html, plain_text.strip()
