from cbrc.models.service import Service, ServicePublic
from cbrc.models.appointment import APPOINTMENT_STATUSES, Appointment, AppointmentPublic
from cbrc.models.busy_slot import BusySlot, BusySlotPublic
from cbrc.models.site_settings import PublicSettings, SiteSettings
from cbrc.models.time_slot import TimeSlot

__all__ = [
    "Service",
    "ServicePublic",
    "APPOINTMENT_STATUSES",
    "Appointment",
    "AppointmentPublic",
    "BusySlot",
    "BusySlotPublic",
    "PublicSettings",
    "SiteSettings",
    "TimeSlot",
]
