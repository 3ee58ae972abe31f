import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Protocol, runtime_checkable

import icalendar

from MemberRecord import MemberRecord, OneOff, ResolvedObject
from recurrence import decode_recurrence

PRODID = '-//pstdecode//NONSGML v1.0//EN'

SENSITIVITY_CLASS: dict[int, str] = {0: 'PUBLIC', 1: 'PRIVATE', 2: 'PRIVATE', 3: 'CONFIDENTIAL'}


def escape_text(text: Optional[str]) -> str:

    if not text:
        return ''
    return text.replace('\\', '\\\\').replace(';', '\\;').replace(',', '\\,').replace('\n', '\\n').replace('\r', '')


###############################################################################################################################
# Distribution Lists
###############################################################################################################################


@runtime_checkable
class ContactLike(Protocol):
    """Store objects that can be listed as a CARD line of a VLIST"""

    display_name: str
    email_address: str


def vlist_uid(descriptor_index: int) -> str:
    return f'PST-VL-{descriptor_index}'


def render_vlist(members: Iterable[MemberRecord], uid: str, group_name: Optional[str] = None) -> Optional[str]:
    """VLIST card for decoded members, None when there are no members at all"""

    members = list(members)
    if not members:
        return None

    lines: list[str] = ['BEGIN:VLIST', f'UID:{uid}.vcf', 'VERSION:1.0']
    for member in members:
        if isinstance(member, ResolvedObject):
            contact = member.external_object
            if isinstance(contact, ContactLike):
                lines.append(
                    f'CARD;{escape_text(contact.email_address)};FN={escape_text(contact.display_name)}:PST-VC-{member.descriptor_index}.vcf')
        elif isinstance(member, OneOff):
            lines.append(
                f'MEMBER;FN={escape_text(member.display_name)}:{escape_text(member.email_address)}')
    if group_name:
        lines.append(f'FN:{group_name}')
    lines.append('END:VLIST')
    return '\r\n'.join(lines) + '\r\n'


###############################################################################################################################
# Appointments
###############################################################################################################################


@dataclass
class Appointment:
    """The appointment fields the VEVENT needs. recurrence_structure is None for items
    that carry no recurrence pattern property."""

    descriptor_index: int
    subject: Optional[str] = None
    location: Optional[str] = None
    body: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    sensitivity: int = 0
    is_recurring: bool = False
    recurrence_base: Optional[datetime] = None
    recurrence_structure: Optional[bytes] = None

    @property
    def uid(self) -> str:
        return f'PST-VE-{self.descriptor_index}'

    def rrule(self) -> Optional[str]:

        if not self.is_recurring or not self.recurrence_structure:
            return None
        return decode_recurrence(self.recurrence_structure)


def as_utc(value: datetime) -> datetime:

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def appointment_to_event(appointment: Appointment, dtstamp: Optional[datetime] = None) -> icalendar.Event:

    event = icalendar.Event()
    event.add('uid', appointment.uid)
    event.add('dtstamp', as_utc(dtstamp or datetime.now(timezone.utc)))

    start: Optional[datetime] = appointment.start_time
    if appointment.is_recurring and appointment.recurrence_base:
        start = appointment.recurrence_base
    if start:
        event.add('dtstart', as_utc(start))
    if appointment.end_time:
        event.add('dtend', as_utc(appointment.end_time))

    if appointment.subject:
        event.add('summary', appointment.subject)
    if appointment.location:
        event.add('location', appointment.location)
    if appointment.body:
        event.add('description', appointment.body)
    event.add('class', SENSITIVITY_CLASS.get(appointment.sensitivity, 'PUBLIC'))

    rrule: Optional[str] = appointment.rrule()
    if rrule:
        try:
            recur = icalendar.vRecur(icalendar.vRecur.from_ical(rrule))
            recur.to_ical()
        except ValueError as e:
            logging.warning(f'Failed to get recurrence structure for {appointment.uid}: {e}')
        else:
            event.add('rrule', recur)
    return event


def appointment_to_ical(appointment: Appointment, dtstamp: Optional[datetime] = None) -> bytes:

    cal = icalendar.Calendar()
    cal.add('version', '2.0')
    cal.add('prodid', PRODID)
    cal.add_component(appointment_to_event(appointment, dtstamp))
    return cal.to_ical()
