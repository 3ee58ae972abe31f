#! /usr/bin/env python3
# -*- coding: UTF-8 -*-
#
# Copyright (c) 2014, Dionach Ltd. All rights reserved. See LICENSE file.
#
# Recurrence pattern decoding, based on MS-OXOCAL 2.2.1.44 RecurrencePattern
# (PidLidAppointmentRecur). Only the fixed prefix and the pattern specific
# region are read, the end condition that follows is left alone.
#

from typing import Final, Optional

from ByteCursor import ByteCursor
from RecurFrequencyEnum import RecurFrequencyEnum

PREFIX_SIZE: Final[int] = 22
DAY_MASK_SIZE: Final[int] = 26
NTH_PATTERN_SIZE: Final[int] = 30

WEEKDAYS: Final[tuple[str, ...]] = ('SU', 'MO', 'TU', 'WE', 'TH', 'FR', 'SA')
NTH_LAST: Final[int] = 5


class RecurPatternType:

    Day = 0x0000
    Week = 0x0001
    Month = 0x0002
    MonthEnd = 0x0003
    MonthNth = 0x0004


def day_mask_to_byday(day_mask: int) -> str:
    """bit 0 is Sunday through bit 6 Saturday"""
    return ','.join(day for bit, day in enumerate(WEEKDAYS) if day_mask & (1 << bit))


class RecurrencePattern:

    reader_version: int
    writer_version: int
    frequency: RecurFrequencyEnum
    frequency_code: int
    pattern_type: int
    calendar_type: int
    first_date_time: int
    period: int
    sliding_flag: int
    day_mask: Optional[int]
    day_of_month: Optional[int]
    nth: Optional[int]

    def __init__(self, data: bytes) -> None:

        cursor = ByteCursor(data)
        self.reader_version = cursor.read_u16_le()
        self.writer_version = cursor.read_u16_le()
        self.frequency_code = cursor.read_u16_le()
        self.frequency = RecurFrequencyEnum.from_code(self.frequency_code)
        self.pattern_type = cursor.read_u16_le()
        self.calendar_type = cursor.read_u16_le()
        self.first_date_time = cursor.read_u32_le()
        self.period = cursor.read_u32_le()
        self.sliding_flag = cursor.read_u32_le()

        self.day_mask = self.day_of_month = self.nth = None

        if self.frequency == RecurFrequencyEnum.Weekly:
            if cursor.has(4):
                self.day_mask = cursor.read_u32_le()
        elif self.frequency == RecurFrequencyEnum.Monthly:
            if self.pattern_type in (RecurPatternType.Month, RecurPatternType.MonthEnd):
                if cursor.has(4):
                    self.day_of_month = cursor.read_u32_le()
            elif self.pattern_type == RecurPatternType.MonthNth:
                if cursor.has(8):
                    self.day_mask = cursor.read_u32_le()
                    self.nth = cursor.read_u32_le()

    @staticmethod
    def from_bytes(data: Optional[bytes]) -> Optional['RecurrencePattern']:
        """None when the structure is absent or shorter than the fixed prefix"""

        if not data or len(data) < PREFIX_SIZE:
            return None
        return RecurrencePattern(bytes(data))

    def to_rrule(self) -> Optional[str]:

        rrule: str
        if self.frequency == RecurFrequencyEnum.Daily:
            rrule = 'FREQ=DAILY'
        elif self.frequency == RecurFrequencyEnum.Weekly:
            rrule = 'FREQ=WEEKLY'
            if self.day_mask is not None:
                byday: str = day_mask_to_byday(self.day_mask)
                if byday:
                    rrule += f';BYDAY={byday}'
        elif self.frequency == RecurFrequencyEnum.Monthly:
            rrule = 'FREQ=MONTHLY'
            if self.day_of_month is not None:
                rrule += f';BYMONTHDAY={self.day_of_month}'
            elif self.day_mask is not None and self.nth is not None:
                # one ordinal prefixes the whole day list when several bits are set
                byday = day_mask_to_byday(self.day_mask)
                if byday:
                    ordinal: str = '-1' if self.nth == NTH_LAST else str(self.nth)
                    rrule += f';BYDAY={ordinal}{byday}'
        elif self.frequency == RecurFrequencyEnum.Yearly:
            rrule = 'FREQ=YEARLY'
        else:
            return None

        if self.period > 1:
            rrule += f';INTERVAL={self.period}'
        return rrule

    def __repr__(self) -> str:

        return f'RecurrencePattern {self.frequency.name}, pattern type: {self.pattern_type}, period: {self.period}'


def decode_recurrence(data: Optional[bytes]) -> Optional[str]:
    """RRULE fragment for a recurrence pattern property, or None when there is no usable recurrence"""

    pattern: Optional[RecurrencePattern] = RecurrencePattern.from_bytes(data)
    if pattern is None:
        return None
    return pattern.to_rrule()
