class PSTDecodeException(Exception):
    """Base class for every decode failure raised by this package"""

    message: str

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class OutOfBoundsException(PSTDecodeException):
    pass


class TooShortException(PSTDecodeException):
    pass


class UnterminatedStringException(PSTDecodeException):
    pass


class HeaderInvalidException(PSTDecodeException):
    pass


class InvalidCountException(HeaderInvalidException):

    count: int

    def __init__(self, count: int) -> None:
        super().__init__(f'Invalid member count: {count}')
        self.count = count


class InvalidOffsetException(HeaderInvalidException):

    offset: int

    def __init__(self, offset: int) -> None:
        super().__init__(f'Invalid data offset: {offset}')
        self.offset = offset


class ResolverException(PSTDecodeException):
    pass
