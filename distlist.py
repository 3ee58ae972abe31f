#! /usr/bin/env python3
# -*- coding: UTF-8 -*-
#
# Copyright (c) 2014, Dionach Ltd. All rights reserved. See LICENSE file.
#
# Distribution list member decoding, based on MS-OXCDATA (one-off and
# wrapped EntryIDs) and MS-OXOCNTC (PidLidDistributionListMembers)
#

import logging
from typing import Any, Callable, Final, Optional

import pstutils
from ByteCursor import ByteCursor
from exceptions import (InvalidCountException, InvalidOffsetException,
                        PSTDecodeException, TooShortException,
                        UnterminatedStringException)
from MemberRecord import (MemberList, MemberRecord, OneOff, ResolvedObject,
                          Skipped)

Resolver = Callable[[int], Any]

MEMBER_CAP: Final[int] = 10000

WRAPPED_ENTRY_GUID: Final[bytes] = bytes.fromhex('812b1fa4bea310199d6e00dd010f5402')
ONE_OFF_ENTRY_GUID: Final[bytes] = bytes.fromhex('c091add3519dcf11a4a900aa0047faa4')

HEADER_SIZE: Final[int] = 8
DISPATCH_PREFIX_SIZE: Final[int] = 20  # flags + guid
WRAPPED_BODY_SIZE: Final[int] = 24
ONE_OFF_PREFIX_SIZE: Final[int] = 4


##############################################################################################################################
# One-Off Entries
##############################################################################################################################


class OneOffEntry:
    """One-off EntryID body. The flag sub fields are kept for inspection only,
    the strings delimit themselves."""

    version: int
    flags: int
    pad: int
    mae: int
    format: int
    m: int
    u: int
    r: int
    l: int
    pad2: int
    display_name: str
    address_type: str
    email_address: str
    start_offset: int
    end_offset: int

    def __init__(self, version: int, flags: int) -> None:

        self.version, self.flags = version, flags
        self.pad = flags & 0x8000
        self.mae = flags & 0x0C00
        self.format = flags & 0x1E00
        self.m = flags & 0x0100
        self.u = flags & 0x0080
        self.r = flags & 0x0060
        self.l = flags & 0x0010
        self.pad2 = flags & 0x000F
        self.display_name = self.address_type = self.email_address = ''
        self.start_offset = self.end_offset = 0

    def to_member(self) -> OneOff:

        return OneOff(self.display_name, self.address_type, self.email_address)

    def __repr__(self) -> str:

        return f'Display Name: {self.display_name}\nAddress Type: {self.address_type}\nEmail Address: {self.email_address}\n'


def find_next_null_char(data: bytes, start: int) -> Optional[int]:
    """Position of the next 00 00 code unit, stepping two bytes at a time from start"""

    while start + 1 < len(data):
        if data[start] == 0 and data[start + 1] == 0:
            return start
        start += 2
    return None


def decode_one_off_entry(data: bytes, offset: int) -> OneOffEntry:

    cursor = ByteCursor(data)
    if offset < 0 or offset + ONE_OFF_PREFIX_SIZE > len(data):
        raise TooShortException('Not enough data to parse one-off entry')
    cursor.seek(offset)

    entry = OneOffEntry(version=cursor.read_u16_le(), flags=cursor.read_u16_le())
    entry.start_offset = offset

    strings: list[str] = []
    for field_name in ('display name', 'address type', 'email address'):
        string_end: Optional[int] = find_next_null_char(data, cursor.offset)
        if string_end is None:
            raise UnterminatedStringException(
                f'Invalid string termination for {field_name}')
        strings.append(pstutils.decode_utf16(
            cursor.read_bytes(string_end - cursor.offset)))
        cursor.skip(2)

    entry.display_name, entry.address_type, entry.email_address = strings
    entry.end_offset = cursor.offset
    return entry


##############################################################################################################################
# Wrapped Entries
##############################################################################################################################


class WrappedEntryHeader:

    entry_type: int
    address_type: int
    is_one_off: bool
    wrapped_flags: int
    guid2: bytes
    descriptor_index: int

    def __init__(self, type_byte: int, wrapped_flags: int, guid2: bytes, descriptor_index: int) -> None:

        self.entry_type = type_byte & 0x0F
        self.address_type = (type_byte & 0x70) >> 4
        self.is_one_off = (type_byte & 0x80) != 0
        self.wrapped_flags = wrapped_flags
        self.guid2 = bytes(guid2)
        self.descriptor_index = descriptor_index

    @staticmethod
    def from_cursor(cursor: ByteCursor) -> 'WrappedEntryHeader':

        if not cursor.has(WRAPPED_BODY_SIZE):
            raise TooShortException(
                f'Not enough data for wrapped entry at position {cursor.offset}')

        type_byte: int = cursor.read_u8()
        wrapped_flags: int = cursor.read_u32_le()
        guid2: bytes = cursor.read_bytes(16)
        descriptor_index: int = cursor.read_u32_le(3)
        # the pad byte is the 25th byte, a body cut right after the index still decodes
        if cursor.has(1):
            cursor.skip(1)
        return WrappedEntryHeader(type_byte, wrapped_flags, guid2, descriptor_index)

    def __repr__(self) -> str:

        return f'WrappedEntry type: {self.entry_type}, address type: {self.address_type}, descriptor index: {self.descriptor_index}'


def decode_wrapped_entry(cursor: ByteCursor, resolver: Resolver) -> tuple[WrappedEntryHeader, MemberRecord]:
    """Reads the wrapped body at the cursor and resolves its descriptor index once.
    A failing resolver yields a Skipped record."""

    header: WrappedEntryHeader = WrappedEntryHeader.from_cursor(cursor)

    try:
        external_object: Any = resolver(header.descriptor_index)
    except Exception as e:
        return header, Skipped(f'Unable to load descriptor index {header.descriptor_index}: {e}', header.descriptor_index)

    if external_object is None:
        return header, Skipped(f'No object for descriptor index {header.descriptor_index}', header.descriptor_index)
    return header, ResolvedObject(header.descriptor_index, external_object)


##############################################################################################################################
# Member List
##############################################################################################################################


class EntryOutcome:
    """What one loop step produced: maybe a record, and whether the loop has to stop"""

    record: Optional[MemberRecord]
    stop: bool
    message: Optional[str]

    def __init__(self, record: Optional[MemberRecord] = None, stop: bool = False, message: Optional[str] = None) -> None:

        self.record, self.stop, self.message = record, stop, message

    @staticmethod
    def halt(message: str) -> 'EntryOutcome':
        return EntryOutcome(stop=True, message=message)


def decode_entry(data: bytes, cursor: ByteCursor, resolver: Resolver) -> EntryOutcome:

    if not cursor.has(DISPATCH_PREFIX_SIZE):
        return EntryOutcome.halt(f'Not enough data for member at position {cursor.offset}')

    cursor.read_u32_le()  # flags
    guid: bytes = cursor.read_bytes(16)

    if guid == WRAPPED_ENTRY_GUID:
        if not cursor.has(WRAPPED_BODY_SIZE):
            return EntryOutcome.halt(f'Not enough data for wrapped entry at position {cursor.offset}')
        _, record = decode_wrapped_entry(cursor, resolver)
        if isinstance(record, Skipped):
            return EntryOutcome(record=record, message=record.reason)
        return EntryOutcome(record=record)

    if guid == ONE_OFF_ENTRY_GUID:
        try:
            entry: OneOffEntry = decode_one_off_entry(data, cursor.offset)
        except PSTDecodeException as e:
            return EntryOutcome.halt(f'Unable to parse one-off entry: {e.message}')
        cursor.seek(entry.end_offset)
        return EntryOutcome(record=entry.to_member())

    return EntryOutcome.halt(f'Unknown GUID {pstutils.bytes_to_hex(guid)}')


def decode_members(data: Optional[bytes], resolver: Resolver, cap: int = MEMBER_CAP) -> MemberList:
    """Decodes a distribution list member blob.
    Raises InvalidCountException or InvalidOffsetException for a bad header, otherwise returns
    whatever could be decoded: resolver failures are kept as Skipped members, an unparseable
    one-off entry or an unknown GUID ends the list since the next record cannot be located."""

    members = MemberList()

    if data is None or len(data) < HEADER_SIZE:
        if data:
            members.warn(None, f'Distribution list data too short, expected at least {HEADER_SIZE} bytes, got {len(data)}')
        return members

    data = bytes(data)
    cursor = ByteCursor(data)

    count: int = cursor.read_i32_le()
    if count < 0 or count > cap:
        raise InvalidCountException(count)

    if count == 0:
        return members

    body_offset: int = cursor.read_i32_le()
    if body_offset < 0 or body_offset >= len(data):
        raise InvalidOffsetException(body_offset)
    cursor.seek(body_offset)

    for member_index in range(count):
        outcome: EntryOutcome = decode_entry(data, cursor, resolver)
        if outcome.message:
            members.warn(member_index, outcome.message)
        if outcome.record is not None:
            members.members.append(outcome.record)
        if outcome.stop:
            break

    return members


def decode_members_safe(data: Optional[bytes], resolver: Resolver, cap: int = MEMBER_CAP) -> MemberList:
    """Same as decode_members but never raises: a bad header gives an empty list"""

    try:
        return decode_members(data, resolver, cap)
    except PSTDecodeException as e:
        logging.warning(
            f'Error reading distribution list members: {e.message}')
        members = MemberList()
        members.warn(None, e.message)
        return members
