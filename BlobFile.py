import glob
import os
from datetime import datetime
from typing import Optional

import pstutils
from distlist import MEMBER_CAP, Resolver, decode_members_safe
from exceptions import ResolverException
from MemberRecord import MemberList
from recurrence import RecurrencePattern


class StoredObject:
    """A store object dumped to disk as <descriptor index>.<ext>"""

    descriptor_index: int
    path: str
    display_name: str

    def __init__(self, descriptor_index: int, path: str) -> None:

        self.descriptor_index, self.path = descriptor_index, path
        self.display_name = os.path.splitext(os.path.basename(path))[0]

    def __repr__(self) -> str:

        return f'{self.display_name} ({self.path})'


class StoredContact(StoredObject):
    """A contact dumped as a vCard, FN and the first EMAIL are read from it"""

    email_address: str

    def __init__(self, descriptor_index: int, path: str) -> None:

        super().__init__(descriptor_index, path)
        self.email_address = ''
        with open(path, encoding='utf-8', errors='replace') as f:
            lines: list[str] = f.read().replace('\r\n ', '').replace('\n ', '').splitlines()
        for line in lines:
            name, sep, value = line.partition(':')
            if not sep or not value:
                continue
            name = name.split(';')[0].upper()
            value = value.replace('\\,', ',').replace('\\;', ';')
            if name == 'FN':
                self.display_name = value
            elif name == 'EMAIL' and not self.email_address:
                self.email_address = value


class FolderResolver:
    """Resolves descriptor indexes against a directory of dumped store objects"""

    store_dir: Optional[str]

    def __init__(self, store_dir: Optional[str]) -> None:

        self.store_dir = store_dir

    def __call__(self, descriptor_index: int) -> StoredObject:

        if not self.store_dir:
            raise ResolverException('No store directory to resolve descriptor indexes against')
        matches: list[str] = sorted(glob.glob(os.path.join(
            glob.escape(self.store_dir), f'{descriptor_index}.*')))
        if not matches:
            raise ResolverException(
                f'No stored object for descriptor index {descriptor_index}')
        if pstutils.get_ext(matches[0]) == '.vcf':
            return StoredContact(descriptor_index, matches[0])
        return StoredObject(descriptor_index, matches[0])


class BlobFile:
    """ BlobFile: class for a property dump file that can decode itself"""

    filename: str
    dir: str
    path: str
    root: str
    ext: str
    filetype: Optional[str]
    errors: list[str]
    members: Optional[MemberList]
    recurrence: Optional[RecurrencePattern]
    rrule: Optional[str]
    size: int
    modified: datetime

    def __init__(self, filename: str, file_dir: str) -> None:
        self.filename = filename
        self.dir = file_dir
        self.path = os.path.join(self.dir, self.filename)
        self.root, self.ext = os.path.splitext(self.filename)
        self.errors = []
        self.filetype = None
        self.members = None
        self.recurrence = None
        self.rrule = None
        self.size = -1

    def set_file_stats(self) -> None:

        try:
            stat: os.stat_result = os.stat(self.path)
            self.size = stat.st_size
            self.modified = datetime.fromtimestamp(stat.st_mtime)
        except OSError as e:
            self.size = -1
            self.set_error(str(e))

    def set_error(self, error_msg: str) -> None:
        self.errors.append(error_msg)

    def classify(self, search_extensions: dict[str, list[str]]) -> Optional[str]:

        for ext_type, ext_list in search_extensions.items():
            if pstutils.get_ext(self.filename) in ext_list:
                self.filetype = ext_type
                return ext_type
        return None

    @property
    def descriptor_index(self) -> Optional[int]:
        """Dump files are named after the descriptor index of the item they came from"""
        return int(self.root) if self.root.isdigit() else None

    def read(self) -> Optional[bytes]:

        try:
            with open(self.path, 'rb') as f:
                return f.read()
        except OSError as e:
            self.set_error(str(e))
            return None

    def decode(self, resolver: Resolver, member_cap: int = MEMBER_CAP) -> bool:
        """Decodes the file according to its filetype, returns False when nothing usable came out"""

        if self.filetype == 'MEMBERS':
            return self.decode_members(resolver, member_cap)
        if self.filetype == 'RECURRENCE':
            return self.decode_recurrence()
        self.set_error(f'Unknown file type for {self.filename}')
        return False

    def decode_members(self, resolver: Resolver, member_cap: int = MEMBER_CAP) -> bool:

        data: Optional[bytes] = self.read()
        if data is None:
            return False
        self.members = decode_members_safe(data, resolver, member_cap)
        for diagnostic in self.members.diagnostics:
            self.set_error(str(diagnostic))
        return len(self.members) > 0

    def decode_recurrence(self) -> bool:

        data: Optional[bytes] = self.read()
        if data is None:
            return False
        self.recurrence = RecurrencePattern.from_bytes(data)
        if self.recurrence is None:
            self.set_error(
                f'Recurrence structure too short: {pstutils.size_friendly(len(data))}')
            return False
        self.rrule = self.recurrence.to_rrule()
        if self.rrule is None:
            self.set_error(
                f'Unknown recurrence frequency 0x{pstutils.to_zeropaddedhex(self.recurrence.frequency_code, 4)}')
            return False
        return True

    def __repr__(self) -> str:

        return f'{self.path} ({self.filetype})'
