#!/usr/bin/env python3
"""
Main entry point for the Consultant Tracker
This is a Flask JSON API that provides:
- Consultant, vendor, submission and interview tracking
- Dashboard statistics, activity charts and analytics
- Scheduled submission reports by email
"""

from app import create_app
from utils import ConfigHelper

app = create_app()

if __name__ == '__main__':
    if ConfigHelper.get_report_config()['enabled']:
        from scheduler import start_background_services
        start_background_services(app)

    app.run(host='0.0.0.0', port=5000)
