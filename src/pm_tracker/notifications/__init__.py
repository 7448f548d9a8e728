"""
Notification subsystem.

Components:
- repository.py: the Notifications collection (create, list, mark read)
- deadline_engine.py: scan-and-generate pass for DEADLINE notifications
"""
