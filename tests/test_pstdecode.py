import struct

import pytest

from config import DecoderConfigSingleton
from conftest import member_blob, one_off_entry, recurrence_blob, wrapped_entry
from pstdecode import Decoder


@pytest.fixture
def dumps(tmp_path):
    search_dir = tmp_path / 'dumps'
    (search_dir / 'calendar').mkdir(parents=True)
    store_dir = tmp_path / 'store'
    store_dir.mkdir()
    (store_dir / '2097188.vcf').write_text('BEGIN:VCARD\r\nFN:Alice Martin\r\nEMAIL:alice@example.com\r\nEND:VCARD\r\n')

    (search_dir / '2097300.dlm').write_bytes(member_blob([
        wrapped_entry(2097188), one_off_entry('Carol Chen', 'SMTP', 'carol@example.com')]))
    (search_dir / 'calendar' / '2097400.rec').write_bytes(recurrence_blob(0x200A, period=2))
    (search_dir / 'calendar' / '2097401.rec').write_bytes(b'\x00')
    (search_dir / 'notes.txt').write_text('ignored')

    DecoderConfigSingleton.reset()
    DecoderConfigSingleton.from_args(search_dir=str(search_dir),
                                     output_file=str(tmp_path / 'report.txt'),
                                     export_dir=str(tmp_path / 'export'),
                                     store_dir=str(store_dir))
    yield tmp_path
    DecoderConfigSingleton.reset()


def test_decode_report_and_export(dumps):
    decoder = Decoder()

    total_files, files_failed, all_files = decoder.decode_all()
    assert total_files == 3
    assert files_failed == 1

    decoder.output_report(all_files, total_files, files_failed)
    report = (dumps / 'report.txt').read_text(encoding='utf-8')
    assert 'RRULE:FREQ=DAILY;INTERVAL=2' in report
    assert 'One-off: Carol Chen <carol@example.com> (SMTP)' in report
    assert 'Resolved 2097188' in report

    assert decoder.export_all(all_files) == 2
    vlist = (dumps / 'export' / 'PST-VL-2097300.vcf').read_text(encoding='utf-8')
    assert 'MEMBER;FN=Carol Chen:carol@example.com' in vlist
    assert 'CARD;alice@example.com;FN=Alice Martin:PST-VC-2097188.vcf' in vlist
    assert 'FN:2097300' in vlist
    ics = (dumps / 'export' / 'PST-VE-2097400.ics').read_bytes()
    assert b'RRULE:FREQ=DAILY;INTERVAL=2' in ics


def test_unexportable_recurrence_does_not_stop_export(dumps):
    (dumps / 'dumps' / 'calendar' / '2097399.rec').write_bytes(
        recurrence_blob(0x200C, pattern_type=4, tail=struct.pack('<II', 0x02, 100)))
    decoder = Decoder()

    total_files, files_failed, all_files = decoder.decode_all()
    assert total_files == 4
    assert files_failed == 1

    assert decoder.export_all(sorted(all_files, key=lambda x: x.filename)) == 3
    assert (dumps / 'export' / 'PST-VL-2097300.vcf').exists()
    assert (dumps / 'export' / 'PST-VE-2097400.ics').exists()
    ics = (dumps / 'export' / 'PST-VE-2097399.ics').read_bytes()
    assert b'SUMMARY:2097399' in ics
    assert b'RRULE' not in ics


def test_failed_write_is_recorded_and_export_continues(dumps):
    (dumps / 'export' / 'PST-VL-2097300.vcf').mkdir(parents=True)
    decoder = Decoder()
    _, _, all_files = decoder.decode_all()

    assert decoder.export_all(all_files) == 1
    assert (dumps / 'export' / 'PST-VE-2097400.ics').exists()
    member_file = [f for f in all_files if f.filename == '2097300.dlm'][0]
    assert any(error.startswith('Export failed') for error in member_file.errors)
