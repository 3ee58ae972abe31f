#! /usr/bin/env python3
# -*- coding: UTF-8 -*-
#
# Copyright (c) 2014, Dionach Ltd. All rights reserved. See LICENSE file.
#
# pstdecode: decode distribution list members and recurrence patterns
# dumped from PST files
#


import argparse
import logging
import os
import platform
import sys
import time
from typing import Optional

import colorama

import pstutils
from BlobFile import BlobFile, FolderResolver
from config import DecoderConfigSingleton
from export import Appointment, appointment_to_ical, render_vlist, vlist_uid
from MemberRecord import OneOff, ResolvedObject, Skipped
from pbar import ProgressbarSingleton

app_version = '1.0'


###################################################################################################################################
# Module Functions
###################################################################################################################################

class Decoder:

    pbar: ProgressbarSingleton

    def decode_all(self) -> tuple[int, int, list[BlobFile]]:

        conf: DecoderConfigSingleton = DecoderConfigSingleton.instance()
        all_files: list[BlobFile] = self.__find_all_files_in_search_directory()
        resolver = FolderResolver(conf.store_dir)

        self.pbar = ProgressbarSingleton()
        self.pbar.create('Blob')

        total_files: int = len(all_files)
        files_completed = 0
        files_failed = 0
        for blob_file in all_files:
            if not blob_file.decode(resolver, conf.member_cap):
                files_failed += 1
                logging.debug(f'Nothing decoded from {blob_file.path}')
            files_completed += 1
            self.pbar.update(items_failed=files_failed,
                             items_total=total_files, items_completed=files_completed)

        self.pbar.finish()

        return total_files, files_failed, all_files

    def output_report(self, all_files: list[BlobFile], total_files: int, files_failed: int) -> None:

        conf: DecoderConfigSingleton = DecoderConfigSingleton.instance()
        report: str = 'PST Decode Report - %s\n%s\n' % (
            time.strftime("%H:%M:%S %d/%m/%Y"), '=' * 100)
        report += 'Searched %s\n' % conf.search_dir
        report += 'Command: %s\n' % (' '.join(sys.argv))
        report += 'Uname: %s\n' % (' | '.join(platform.uname()))
        report += 'Decoded %s files. %s without a usable result.\n%s\n\n' % (
            total_files, files_failed, '=' * 100)

        for blob_file in sorted(all_files, key=lambda x: x.filename):
            header: str = f"{blob_file.filetype}: {blob_file.path} ({pstutils.size_friendly(blob_file.size)})"
            print(colorama.Fore.CYAN + pstutils.unicode_to_ascii(header))
            report += header + '\n'

            lines: list[str] = self.__describe(blob_file)
            for line in lines:
                print(colorama.Fore.WHITE + '\t' + pstutils.unicode_to_ascii(line))
            for error in blob_file.errors:
                print(colorama.Fore.YELLOW + '\t' + pstutils.unicode_to_ascii(error))
            report += ''.join(['\t%s\n' % line for line in lines + blob_file.errors]) + '\n'

        report = report.replace('\n', os.linesep)

        print(colorama.Fore.WHITE +
              f'Report written to {pstutils.unicode_to_ascii(conf.output_file)}')

        with open(conf.output_file, encoding='utf-8', mode='w') as f:
            f.write(report)

    def export_all(self, all_files: list[BlobFile]) -> int:
        """Writes a .vcf VLIST per member list and an .ics per recurrence pattern into the export directory"""

        export_dir: Optional[str] = DecoderConfigSingleton.instance().export_dir
        if not export_dir:
            return 0
        os.makedirs(export_dir, exist_ok=True)

        exported = 0
        for blob_file in all_files:
            try:
                if self.__export(blob_file, export_dir):
                    exported += 1
            except (OSError, ValueError) as e:
                blob_file.set_error(f'Export failed: {e}')
                logging.warning(f'Unable to export {blob_file.path}: {e}')

        print(colorama.Fore.WHITE + f'Exported {exported} files to {export_dir}')
        return exported

    def __export(self, blob_file: BlobFile, export_dir: str) -> bool:

        descriptor_index: int = blob_file.descriptor_index or 0
        if blob_file.members:
            uid: str = vlist_uid(descriptor_index)
            vlist: Optional[str] = render_vlist(blob_file.members, uid, blob_file.root)
            if not vlist:
                return False
            self.__write(os.path.join(export_dir, pstutils.get_safe_filename(uid + '.vcf')),
                         vlist.encode('utf-8'))
            return True
        if blob_file.rrule and blob_file.recurrence:
            appointment = Appointment(descriptor_index=descriptor_index,
                                      subject=blob_file.root,
                                      is_recurring=True,
                                      recurrence_structure=blob_file.read())
            self.__write(os.path.join(export_dir, pstutils.get_safe_filename(appointment.uid + '.ics')),
                         appointment_to_ical(appointment))
            return True
        return False

    def __find_all_files_in_search_directory(self) -> list[BlobFile]:
        """Recursively searches the search directory for property dump files"""

        conf: DecoderConfigSingleton = DecoderConfigSingleton.instance()
        blob_files: list[BlobFile] = []
        for root, _, files in os.walk(conf.search_dir):
            for filename in files:
                blob_file = BlobFile(filename, root)
                if blob_file.classify(conf.search_extensions):
                    blob_file.set_file_stats()
                    blob_files.append(blob_file)
        logging.info(f'Found {len(blob_files)} files in {conf.search_dir}')
        return blob_files

    def __describe(self, blob_file: BlobFile) -> list[str]:

        lines: list[str] = []
        if blob_file.members is not None:
            for member in blob_file.members:
                if isinstance(member, ResolvedObject):
                    lines.append(f'Resolved {member.descriptor_index}: {member.external_object!r}')
                elif isinstance(member, OneOff):
                    lines.append(f'One-off: {member}')
                elif isinstance(member, Skipped):
                    lines.append(f'Skipped: {member.reason}')
        if blob_file.rrule:
            lines.append(f'RRULE:{blob_file.rrule}')
        return lines

    def __write(self, path: str, content: bytes) -> None:

        with open(path, mode='wb') as f:
            f.write(content)


###################################################################################################################################
# Main
###################################################################################################################################


def main() -> None:
    application_path: str = '.'
    if getattr(sys, 'frozen', False):
        application_path = os.path.dirname(sys.executable)
    elif __file__:
        application_path = os.path.dirname(os.path.abspath(__file__))
    logging.basicConfig(filename=os.path.join(application_path, 'pstdecode.log'),
                        encoding='utf-8',
                        format='%(asctime)s %(message)s',
                        level=logging.DEBUG)

    logging.info('Starting')

    colorama.init()

    # Command Line Arguments
    arg_parser: argparse.ArgumentParser = argparse.ArgumentParser(prog='pstdecode', description='PST Decode v%s: decode distribution list members and recurrence patterns dumped from PST files.' % (
        app_version), formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    arg_parser.add_argument(
        '-s', dest='search', help='base directory to search in')
    arg_parser.add_argument(
        '-o', dest='outfile', help='output file name for the decode report')
    arg_parser.add_argument(
        '-e', dest='export', help='directory to export .vcf and .ics files to')
    arg_parser.add_argument(
        '-S', dest='store', help='directory of dumped store objects named by descriptor index')
    arg_parser.add_argument(
        '-n', dest='cap', type=int, help='largest member count accepted in a distribution list')
    arg_parser.add_argument(
        '-m', dest='member_files', help='distribution list member file extensions')
    arg_parser.add_argument(
        '-r', dest='recurrence_files', help='recurrence pattern file extensions')
    arg_parser.add_argument(
        '-C', dest='config', help='configuration file to use')

    args: argparse.Namespace = arg_parser.parse_args()

    # The singleton is initiated at the first call with the hardcoded default values.
    # If exists, read the config file
    if args.config:
        DecoderConfigSingleton.from_file(config_file=str(args.config))

    # Finally, read the CLI parameters as they override the default and config file values
    DecoderConfigSingleton.from_args(search_dir=str(args.search),
                                     output_file=str(args.outfile),
                                     export_dir=str(args.export),
                                     store_dir=str(args.store),
                                     member_cap=args.cap,
                                     member_extensions_string=str(args.member_files),
                                     recurrence_extensions_string=str(args.recurrence_files))

    decoder = Decoder()
    total_files, files_failed, all_files = decoder.decode_all()

    decoder.output_report(all_files, total_files, files_failed)
    decoder.export_all(all_files)


if __name__ == "__main__":
    try:
        main()
        logging.info('Exiting')
    except KeyboardInterrupt:
        print('Cancelled by user.')
        try:
            sys.exit(0)
        except SystemExit:
            os._exit(0)
    except Exception as ex:
        print('ERROR: ' + str(ex))
        logging.exception('Exiting')
        try:
            sys.exit(1)
        except SystemExit:
            os._exit(1)
