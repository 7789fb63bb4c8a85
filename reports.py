"""
Submission reports mailed to management.

Each report covers one closed period: daily is yesterday, weekly is the
Sunday-Saturday week a week ago, monthly is the calendar month 30 days ago.
"""

import logging
import smtplib
from datetime import datetime, timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from markupsafe import escape

from errors import ValidationError
from queries import SubmissionFilter, list_submissions
from timeframes import MONTHLY, Timeframe, Window, current_week, window_for
from utils import ConfigHelper, log_processing_time, utc_today

logger = logging.getLogger(__name__)

REPORT_TYPES = ('daily', 'weekly', 'monthly')

STATUS_COLORS = {
    'submitted': '#3b82f6',
    'under_review': '#f59e0b',
    'interview_scheduled': '#8b5cf6',
    'hired': '#10b981',
    'rejected': '#ef4444'
}
DEFAULT_STATUS_COLOR = '#6b7280'


def report_window(report_type, today=None):
    today = today or utc_today()
    if report_type == 'daily':
        yesterday = today - timedelta(days=1)
        return Window(datetime.combine(yesterday, datetime.min.time()),
                      datetime.combine(today, datetime.min.time()))
    if report_type == 'weekly':
        return current_week(today - timedelta(days=7))
    if report_type == 'monthly':
        # Sent on the last day of the month, so this is the month now ending
        yesterday = today - timedelta(days=1)
        return window_for(Timeframe(MONTHLY, yesterday.year, yesterday.month))
    raise ValidationError(f"Invalid report type: must be one of {', '.join(REPORT_TYPES)}")


def report_title(report_type):
    return f"{report_type.capitalize()} Submission Report"


def report_rows(window):
    """Flattened submission rows for the window, oldest first."""
    submissions = list_submissions(SubmissionFilter(window=window))
    rows = []
    for submission in reversed(submissions):
        recruiter = submission.recruiter
        rows.append({
            'submission_date': submission.submission_date,
            'consultant_name': submission.consultant.name,
            'position_title': submission.position_title,
            'client_name': submission.client_name or 'N/A',
            'end_client_name': submission.end_client_name or 'N/A',
            'vendor_name': submission.vendor.name,
            'status': submission.status.value,
            'submitted_by': recruiter.name if recruiter else 'Unknown'
        })
    return rows


def summarize(rows):
    return {
        'total_submissions': len(rows),
        'unique_consultants': len({row['consultant_name'] for row in rows}),
        'vendors_engaged': len({row['vendor_name'] for row in rows}),
        'active_recruiters': len({row['submitted_by'] for row in rows})
    }


def recruiter_summary(rows):
    recruiters = {}
    for row in rows:
        stats = recruiters.setdefault(row['submitted_by'], {
            'name': row['submitted_by'],
            'count': 0,
            'consultants': set(),
            'vendors': set()
        })
        stats['count'] += 1
        stats['consultants'].add(row['consultant_name'])
        stats['vendors'].add(row['vendor_name'])

    return [{
        'name': stats['name'],
        'submissions': stats['count'],
        'consultants': len(stats['consultants']),
        'vendors': len(stats['vendors'])
    } for stats in recruiters.values()]


@log_processing_time
def generate_report(report_type, today=None):
    """Collect the rows and summaries for one report period"""
    window = report_window(report_type, today)
    rows = report_rows(window)
    return {
        'report_type': report_type,
        'title': report_title(report_type),
        'generated_on': (today or utc_today()).strftime('%B %d, %Y'),
        'window': window.to_dict(),
        'summary': summarize(rows),
        'recruiters': recruiter_summary(rows),
        'submissions': rows
    }


def _status_badge(status):
    color = STATUS_COLORS.get(status, DEFAULT_STATUS_COLOR)
    label = status.replace('_', ' ').upper()
    return f'<span style="background-color: {color}; color: white; padding: 4px 8px; border-radius: 4px; font-size: 12px;">{label}</span>'


def render_report_html(report):
    """Render a generated report as a self-contained HTML email body"""
    summary = report['summary']

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <title>{escape(report['title'])}</title>
        <style>
            body {{ font-family: Arial, sans-serif; color: #333; max-width: 1200px; margin: 0 auto; padding: 20px; }}
            .header {{ background-color: #667eea; color: white; padding: 30px; border-radius: 10px; }}
            .stats {{ display: flex; justify-content: space-around; margin: 20px 0; }}
            .stat {{ text-align: center; }}
            .stat h3 {{ color: #3b82f6; margin: 0; }}
            table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
            th, td {{ padding: 10px; text-align: left; border-bottom: 1px solid #ddd; }}
            th {{ background-color: #f8f9fa; }}
        </style>
    </head>
    <body>
        <div class="header">
            <h2>{escape(report['title'])}</h2>
            <p>Generated on {report['generated_on']}</p>
            <p>Period: {report['window']['start']} to {report['window']['end']}</p>
        </div>

        <div class="stats">
            <div class="stat">
                <h3>{summary['total_submissions']}</h3>
                <p>Total Submissions</p>
            </div>
            <div class="stat">
                <h3>{summary['unique_consultants']}</h3>
                <p>Unique Consultants</p>
            </div>
            <div class="stat">
                <h3>{summary['vendors_engaged']}</h3>
                <p>Vendors Engaged</p>
            </div>
            <div class="stat">
                <h3>{summary['active_recruiters']}</h3>
                <p>Active Recruiters</p>
            </div>
        </div>

        <h3>Recruiter Performance</h3>
    """

    if report['recruiters']:
        html_content += """
        <table>
            <thead>
                <tr>
                    <th>Recruiter</th>
                    <th>Submissions</th>
                    <th>Consultants</th>
                    <th>Vendors</th>
                </tr>
            </thead>
            <tbody>
        """
        for recruiter in report['recruiters']:
            html_content += f"""
                <tr>
                    <td>{escape(recruiter['name'])}</td>
                    <td>{recruiter['submissions']}</td>
                    <td>{recruiter['consultants']}</td>
                    <td>{recruiter['vendors']}</td>
                </tr>
            """
        html_content += """
            </tbody>
        </table>
        """
    else:
        html_content += "<p>No recruiter activity found for this period.</p>"

    html_content += "<h3>Detailed Submissions</h3>"

    if report['submissions']:
        html_content += """
        <table>
            <thead>
                <tr>
                    <th>Date</th>
                    <th>Consultant Name</th>
                    <th>Position</th>
                    <th>Client</th>
                    <th>End Client</th>
                    <th>Vendor</th>
                    <th>Status</th>
                    <th>Submitted By</th>
                </tr>
            </thead>
            <tbody>
        """
        for row in report['submissions']:
            html_content += f"""
                <tr>
                    <td>{row['submission_date']:%b %d, %Y}</td>
                    <td>{escape(row['consultant_name'])}</td>
                    <td>{escape(row['position_title'])}</td>
                    <td>{escape(row['client_name'])}</td>
                    <td>{escape(row['end_client_name'])}</td>
                    <td>{escape(row['vendor_name'])}</td>
                    <td>{_status_badge(row['status'])}</td>
                    <td>{escape(row['submitted_by'])}</td>
                </tr>
            """
        html_content += """
            </tbody>
        </table>
        """
    else:
        html_content += f"<p>No submissions found for this {report['report_type']} period.</p>"

    html_content += """
        <p><em>This is an automated report from the Consultant Tracker.</em></p>
    </body>
    </html>
    """
    return html_content


def generate_report_preview(report_type, today=None):
    """Render a report without sending it"""
    return render_report_html(generate_report(report_type, today))


def send_report(report_type, recipients=None, sender_email=None, today=None):
    """Generate and mail a report. Returns True when the mail was handed to the SMTP server."""
    if report_type not in REPORT_TYPES:
        raise ValidationError(f"Invalid report type: must be one of {', '.join(REPORT_TYPES)}")

    smtp_config = ConfigHelper.get_smtp_config()
    report_config = ConfigHelper.get_report_config()
    recipients = recipients or report_config['recipients']
    sender_email = sender_email or report_config['sender_email']

    if not smtp_config['smtp_user'] or not recipients or not sender_email:
        logger.warning(f"SMTP credentials or recipients not configured, {report_type} report not sent")
        return False

    try:
        report = generate_report(report_type, today)

        msg = MIMEMultipart()
        msg['From'] = sender_email
        msg['To'] = ', '.join(recipients)
        msg['Subject'] = f"{report['title']} - {report['generated_on']}"
        msg.attach(MIMEText(render_report_html(report), 'html'))

        with smtplib.SMTP(smtp_config['smtp_server'], smtp_config['smtp_port']) as server:
            server.starttls()
            server.login(smtp_config['smtp_user'], smtp_config['smtp_password'])
            server.send_message(msg)

        logger.info(f"{report_type} report sent to {len(recipients)} recipients")
        return True

    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error sending {report_type} report email: {e}")
        return False
