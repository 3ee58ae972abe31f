import struct

import pytest

from BlobFile import BlobFile, FolderResolver, StoredContact, StoredObject
from conftest import member_blob, one_off_entry, recurrence_blob, wrapped_entry
from exceptions import ResolverException
from export import ContactLike
from MemberRecord import OneOff, ResolvedObject, Skipped

EXTENSIONS = {'MEMBERS': ['.dlm'], 'RECURRENCE': ['.rec']}


@pytest.fixture
def store(tmp_path):
    store_dir = tmp_path / 'store'
    store_dir.mkdir()
    (store_dir / '2097188.vcf').write_text('BEGIN:VCARD\r\nEND:VCARD\r\n')
    return store_dir


def blob_file(directory, name: str, data: bytes) -> BlobFile:
    (directory / name).write_bytes(data)
    blob = BlobFile(name, str(directory))
    blob.classify(EXTENSIONS)
    blob.set_file_stats()
    return blob


def test_folder_resolver(store):
    resolver = FolderResolver(str(store))

    stored = resolver(2097188)
    assert isinstance(stored, StoredObject)
    assert stored.display_name == '2097188'
    with pytest.raises(ResolverException):
        resolver(1)
    with pytest.raises(ResolverException):
        FolderResolver(None)(2097188)


def test_stored_contact_reads_vcard(store):
    (store / '2097220.vcf').write_text('BEGIN:VCARD\r\nVERSION:3.0\r\nFN:Martin\\, Alice\r\n'
                                'EMAIL;TYPE=work:alice@example.com\r\nEMAIL:other@example.com\r\nEND:VCARD\r\n')
    (store / '2097252.msg').write_bytes(b'\x00')
    resolver = FolderResolver(str(store))

    contact = resolver(2097220)
    assert isinstance(contact, StoredContact)
    assert isinstance(contact, ContactLike)
    assert contact.display_name == 'Martin, Alice'
    assert contact.email_address == 'alice@example.com'

    stored = resolver(2097252)
    assert type(stored) is StoredObject
    assert not isinstance(stored, ContactLike)


def test_classify(tmp_path):
    assert BlobFile('12.dlm', str(tmp_path)).classify(EXTENSIONS) == 'MEMBERS'
    assert BlobFile('12.REC', str(tmp_path)).classify(EXTENSIONS) == 'RECURRENCE'
    assert BlobFile('12.txt', str(tmp_path)).classify(EXTENSIONS) is None
    assert BlobFile('12.dlm', str(tmp_path)).descriptor_index == 12
    assert BlobFile('team.dlm', str(tmp_path)).descriptor_index is None


def test_decode_members(tmp_path, store):
    data = member_blob([wrapped_entry(2097188),
                        wrapped_entry(2097220),
                        one_off_entry('Carol Chen', 'SMTP', 'carol@example.com')])
    blob = blob_file(tmp_path, '2097300.dlm', data)

    assert blob.decode(FolderResolver(str(store)))
    assert blob.size == len(data)
    assert isinstance(blob.members[0], ResolvedObject)
    assert isinstance(blob.members[1], Skipped)
    assert blob.members[2] == OneOff('Carol Chen', 'SMTP', 'carol@example.com')
    assert len(blob.errors) == 1


def test_decode_members_bad_header_is_recorded(tmp_path, store):
    blob = blob_file(tmp_path, '1.dlm', struct.pack('<ii', -5, 8))

    assert not blob.decode(FolderResolver(str(store)))
    assert len(blob.members) == 0
    assert 'Invalid member count' in blob.errors[0]


def test_decode_members_with_cap(tmp_path, store):
    blob = blob_file(tmp_path, '1.dlm', member_blob([wrapped_entry(2097188)] * 3))

    assert not blob.decode(FolderResolver(str(store)), member_cap=2)


def test_decode_recurrence(tmp_path):
    blob = blob_file(tmp_path, '5.rec', recurrence_blob(0x200D, period=12))

    assert blob.decode(FolderResolver(None))
    assert blob.rrule == 'FREQ=YEARLY;INTERVAL=12'
    assert blob.errors == []


def test_decode_recurrence_failures(tmp_path):
    short = blob_file(tmp_path, '5.rec', b'\x04\x30')
    unknown = blob_file(tmp_path, '6.rec', recurrence_blob(0x1234))

    assert not short.decode(FolderResolver(None))
    assert not unknown.decode(FolderResolver(None))
    assert 'too short' in short.errors[0]
    assert '0x1234' in unknown.errors[0]


def test_missing_file(tmp_path):
    blob = BlobFile('gone.rec', str(tmp_path))
    blob.classify(EXTENSIONS)
    blob.set_file_stats()

    assert blob.size == -1
    assert not blob.decode(FolderResolver(None))
    assert blob.errors
