"""Event attendance & absentee fines.

This package is organized by feature modules (timewindow, tokens, events,
checkin, fines, ...) with a thin Flask controller layer and service/repository
layers underneath.
"""
