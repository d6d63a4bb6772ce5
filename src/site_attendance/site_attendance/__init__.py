"""Site Attendance package.

Construction-site attendance and timesheet reconciliation, organized by
feature modules (workers, attendance, sessions, timesheets, vacations) with a
thin Flask controller layer over service/repository layers.
"""
