"""Timeclock package.

Punch-registration engine organized by feature modules (biometrics, schedules,
punches, ...) with Protocol repositories, MySQL implementations and a thin Flask
controller layer.
"""
