import os
import re
import struct
import unicodedata
from ctypes import ArgumentError


def unicode_to_ascii(unicode_str: str) -> str:
    return unicodedata.normalize('NFKD', unicode_str).encode('ascii', 'ignore').decode("ascii")


def to_zeropaddedhex(value, fixed_length: int) -> str:
    return f"{value:0{fixed_length}x}".upper()


def bytes_to_hex(value_bytes: bytes) -> str:
    return ' '.join(to_zeropaddedhex(b, 2) for b in value_bytes)


def get_ext(file_name: str) -> str:

    return os.path.splitext(file_name)[1].lower()


def get_safe_filename(filename: str) -> str:

    return re.sub(r'[/\\;,><&\*:%=\+@!#\^\(\)|\?]', '', filename)


def size_friendly(size: int) -> str:
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{(size / 1024)}KB"
    if size < 1024 * 1024 * 1024:
        return f"{(size / (1024 * 1024))}MB"
    return f"{(size / (1024 * 1024 * 1024))}GB"


def unpack_integer(format: str, buffer: bytes) -> int:
    if format.lstrip('<') in ['b', 'B', 'h', 'H', 'i', 'I', 'l', 'L', 'q', 'Q']:
        return int(struct.unpack(format, buffer)[0])
    else:
        raise ArgumentError(format, buffer)


def unpack_le(buffer: bytes) -> int:
    """Little-endian unsigned integer of any width, for the 3 byte descriptor index among others"""
    return int.from_bytes(buffer, byteorder='little', signed=False)


def decode_utf16(value_bytes: bytes) -> str:
    return value_bytes.decode('utf-16-le', errors='replace')

