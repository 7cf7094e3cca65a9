from models.attendee import Attendee, AttendeeFields
from models.slot import SLOT_INTERVAL_MINUTES, TimeSlot, generate_time_slots
from models.day import DaySchedule
from models.room import Room
from models.booking import BookingRecord, DuplicateMatch

__all__ = [
    "Attendee",
    "AttendeeFields",
    "SLOT_INTERVAL_MINUTES",
    "TimeSlot",
    "generate_time_slots",
    "DaySchedule",
    "Room",
    "BookingRecord",
    "DuplicateMatch",
]
