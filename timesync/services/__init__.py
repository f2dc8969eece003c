"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .planner import CalendarSourceProtocol, MeetingPlanner, check_slot_keys, fetch_busy_for_slots

__all__ = ["CalendarSourceProtocol", "MeetingPlanner", "check_slot_keys", "fetch_busy_for_slots"]
