import configparser
import os
import time
from typing import Optional

MEMBER_CAP_DEFAULT: int = 10000


class DecoderConfigSingleton:
    search_dir: str = '.'
    config_file: str = 'pstdecode.ini'
    output_file: str = f'pstdecode_{time.strftime("%Y-%m-%d-%H%M%S")}.txt'
    export_dir: Optional[str] = None
    store_dir: Optional[str] = None
    member_cap: int = MEMBER_CAP_DEFAULT
    search_extensions: dict[str, list[str]] = {
        'MEMBERS': ['.dlm'],
        'RECURRENCE': ['.rec']
    }

    # Here is the core of the singleton
    __instance: Optional['DecoderConfigSingleton'] = None

    @staticmethod
    def instance() -> "DecoderConfigSingleton":
        """ Static access method. """
        if DecoderConfigSingleton.__instance is None:
            DecoderConfigSingleton.__instance = DecoderConfigSingleton()
        return DecoderConfigSingleton.__instance

    @staticmethod
    def reset() -> None:
        DecoderConfigSingleton.__instance = None

    def __init__(self) -> None:

        # copies, so updates never leak into the class level defaults
        self.search_extensions = {ext_type: list(ext_list)
                                  for ext_type, ext_list in DecoderConfigSingleton.search_extensions.items()}

    @staticmethod
    def from_args(search_dir: Optional[str] = None,
                  output_file: Optional[str] = None,
                  export_dir: Optional[str] = None,
                  store_dir: Optional[str] = None,
                  member_cap: Optional[int] = None,
                  member_extensions_string: Optional[str] = None,
                  recurrence_extensions_string: Optional[str] = None) -> None:
        """If any parameter is provided, it overwrites the previous value
        """

        DecoderConfigSingleton.update(search_dir, output_file, export_dir, store_dir, member_cap,
                                      member_extensions_string, recurrence_extensions_string)

    @staticmethod
    def from_file(config_file: str) -> None:
        """If a config file provided and it has specific values, they overwrite the previous values

        Args:
            config_file (str): Path to config file in INI format
        """

        if not os.path.isfile(config_file):
            raise ValueError("Invalid configuration file.")

        config_from_file: dict = DecoderConfigSingleton.parse_file(config_file)

        search_dir: Optional[str] = DecoderConfigSingleton.try_parse(
            config_from_file=config_from_file, property='search')
        output_file: Optional[str] = DecoderConfigSingleton.try_parse(
            config_from_file=config_from_file, property='outfile')
        export_dir: Optional[str] = DecoderConfigSingleton.try_parse(
            config_from_file=config_from_file, property='export')
        store_dir: Optional[str] = DecoderConfigSingleton.try_parse(
            config_from_file=config_from_file, property='store')
        member_cap: Optional[int] = DecoderConfigSingleton.check_cap(
            config_from_file)
        member_extensions_string: Optional[str] = DecoderConfigSingleton.try_parse(
            config_from_file=config_from_file, property='memberfiles')
        recurrence_extensions_string: Optional[str] = DecoderConfigSingleton.try_parse(
            config_from_file=config_from_file, property='recurrencefiles')

        DecoderConfigSingleton.update(search_dir, output_file, export_dir, store_dir, member_cap,
                                      member_extensions_string, recurrence_extensions_string)

    @staticmethod
    def parse_file(config_file: str) -> dict:
        config: configparser.ConfigParser = configparser.ConfigParser()
        config.read(config_file)
        config_from_file: dict = {}

        for nvp in config.items('DEFAULT'):
            config_from_file[nvp[0]] = nvp[1]
        return config_from_file

    @staticmethod
    def check_cap(config_from_file: dict) -> Optional[int]:
        if 'cap' in config_from_file:
            try:
                return int(config_from_file['cap'])
            except ValueError as ve:
                raise ValueError(
                    f"Invalid member cap in configuration file: {config_from_file['cap']}") from ve
        return None

    @staticmethod
    def try_parse(config_from_file: dict, property: str) -> Optional[str]:
        if property in config_from_file:
            return str(config_from_file[property])
        return None

    @staticmethod
    def update(search_dir: Optional[str], output_file: Optional[str], export_dir: Optional[str], store_dir: Optional[str], member_cap: Optional[int],
               member_extensions_string: Optional[str], recurrence_extensions_string: Optional[str]) -> None:

        conf: DecoderConfigSingleton = DecoderConfigSingleton.instance()
        if search_dir and search_dir != 'None':
            conf.search_dir = search_dir

        if output_file and output_file != 'None':
            conf.output_file = output_file

        if export_dir and export_dir != 'None':
            conf.export_dir = export_dir

        if store_dir and store_dir != 'None':
            conf.store_dir = store_dir

        if member_cap is not None:
            if member_cap < 0:
                raise ValueError(f'Member cap must not be negative: {member_cap}')
            conf.member_cap = member_cap

        if member_extensions_string and member_extensions_string != 'None':
            conf.search_extensions['MEMBERS'] = [ext.strip().lower()
                                                 for ext in member_extensions_string.split(',')]
        if recurrence_extensions_string and recurrence_extensions_string != 'None':
            conf.search_extensions['RECURRENCE'] = [ext.strip().lower()
                                                    for ext in recurrence_extensions_string.split(',')]
