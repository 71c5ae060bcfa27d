"""
Shared kernel of the booking service

Domain base classes, value objects, the unit of work and the message bus
used by every app under ``apps/``.
"""
