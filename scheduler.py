import time
import threading
import logging
import schedule
from datetime import date, timedelta

from reports import send_report
from utils import ConfigHelper

logger = logging.getLogger(__name__)

def is_last_day_of_month(today=None):
    # Jobs fire on the local clock, so the local date decides
    today = today or date.today()
    return (today + timedelta(days=1)).day == 1

def send_scheduled_report(app, report_type):
    """Send one report inside its own application context"""
    with app.app_context():
        try:
            logger.info(f"Running {report_type} email report...")
            if send_report(report_type):
                logger.info(f"{report_type} report sent successfully")
            else:
                logger.error(f"Failed to send {report_type} report")
        except Exception as e:
            logger.error(f"Error sending scheduled {report_type} report: {e}")

def send_monthly_report_if_due(app, today=None):
    """Monthly job fires daily; only the last day of the month sends"""
    if is_last_day_of_month(today):
        send_scheduled_report(app, 'monthly')

def schedule_tasks(app, scheduler=None):
    """Schedule all background tasks"""
    scheduler = scheduler or schedule.default_scheduler
    config = ConfigHelper.get_report_config()

    # Daily report every evening
    scheduler.every().day.at(config['daily_at']).do(send_scheduled_report, app, 'daily')

    # Weekly report on Friday evening
    scheduler.every().friday.at(config['weekly_at']).do(send_scheduled_report, app, 'weekly')

    # Monthly report on the last day of the month
    scheduler.every().day.at(config['monthly_at']).do(send_monthly_report_if_due, app)

    logger.info("Scheduled tasks configured")
    return scheduler

def run_scheduler(scheduler=None):
    """Run the scheduler loop"""
    scheduler = scheduler or schedule.default_scheduler
    logger.info("Starting scheduler...")

    while True:
        try:
            scheduler.run_pending()
            time.sleep(60)  # Check every minute
        except KeyboardInterrupt:
            logger.info("Scheduler stopped")
            break
        except Exception as e:
            logger.error(f"Scheduler error: {e}")
            time.sleep(300)  # Wait 5 minutes before retrying

def start_background_services(app):
    """Start all background services"""
    logger.info("Starting background services...")

    scheduler = schedule_tasks(app)

    scheduler_thread = threading.Thread(target=run_scheduler, args=(scheduler,), daemon=True)
    scheduler_thread.start()
    logger.info("Scheduler started")

    return scheduler_thread
