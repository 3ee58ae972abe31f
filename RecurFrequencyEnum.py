from enum import Enum


class RecurFrequencyEnum(Enum):

    Unknown = 0x0000
    Daily = 0x200A
    Weekly = 0x200B
    Monthly = 0x200C
    Yearly = 0x200D

    @staticmethod
    def from_code(code: int) -> 'RecurFrequencyEnum':
        for frequency in RecurFrequencyEnum:
            if frequency.value == code and frequency is not RecurFrequencyEnum.Unknown:
                return frequency
        return RecurFrequencyEnum.Unknown
