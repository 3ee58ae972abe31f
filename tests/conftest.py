import struct
from typing import Optional

import pytest

from distlist import ONE_OFF_ENTRY_GUID, WRAPPED_ENTRY_GUID


def utf16z(text: str) -> bytes:
    return text.encode('utf-16-le') + b'\x00\x00'


def one_off_body(display_name: str, address_type: str, email_address: str, version: int = 0, flags: int = 0x0190) -> bytes:
    return struct.pack('<HH', version, flags) + utf16z(display_name) + utf16z(address_type) + utf16z(email_address)


def wrapped_body(descriptor_index: int, type_byte: int = 0xC3, wrapped_flags: int = 0, guid2: bytes = bytes(16)) -> bytes:
    return bytes([type_byte]) + struct.pack('<I', wrapped_flags) + guid2 + descriptor_index.to_bytes(3, 'little') + b'\x00'


def entry(guid: bytes, body: bytes, flags: int = 0) -> bytes:
    return struct.pack('<I', flags) + guid + body


def wrapped_entry(descriptor_index: int, **kwargs) -> bytes:
    return entry(WRAPPED_ENTRY_GUID, wrapped_body(descriptor_index, **kwargs))


def one_off_entry(display_name: str, address_type: str, email_address: str) -> bytes:
    return entry(ONE_OFF_ENTRY_GUID, one_off_body(display_name, address_type, email_address))


def member_blob(entries: list[bytes], count: Optional[int] = None, body_offset: int = 8) -> bytes:
    if count is None:
        count = len(entries)
    header: bytes = struct.pack('<ii', count, body_offset)
    padding: bytes = bytes(max(0, body_offset - len(header)))
    return header + padding + b''.join(entries)


def recurrence_blob(frequency: int, pattern_type: int = 0, period: int = 1, tail: bytes = b'') -> bytes:
    return struct.pack('<HHHHHIII', 0x3004, 0x3004, frequency, pattern_type, 0, 0x0C1C2E60, period, 0) + tail


class Contact:

    def __init__(self, display_name: str, email_address: str) -> None:
        self.display_name, self.email_address = display_name, email_address

    def __repr__(self) -> str:
        return f'Contact({self.display_name})'


class DictResolver:
    """Resolver over a dict, counting calls per descriptor index"""

    def __init__(self, objects: dict) -> None:
        self.objects = objects
        self.calls: list[int] = []

    def __call__(self, descriptor_index: int):
        self.calls.append(descriptor_index)
        if descriptor_index not in self.objects:
            raise KeyError(f'descriptor {descriptor_index} not found')
        return self.objects[descriptor_index]


@pytest.fixture
def contacts() -> dict:
    return {0x200024: Contact('Alice Martin', 'alice@example.com'),
            0x200044: Contact('Bob Dupont', 'bob@example.com')}


@pytest.fixture
def resolver(contacts) -> DictResolver:
    return DictResolver(contacts)
