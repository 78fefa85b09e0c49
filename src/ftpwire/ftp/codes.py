"""Response codes and transfer-state enums for ftpwire.

Codes are kept as their 3-character wire form so a received code can be
compared directly against the constants below.
"""

from enum import Enum


class ResponseCode(str, Enum):
    """Known FTP response codes (RFC 959 subset)."""
    FILE_STATUS_OK_OPENING_DATA = "150"
    COMMAND_OK = "200"
    SYSTEM_STATUS = "211"
    DIRECTORY_STATUS = "212"
    FILE_STATUS = "213"
    SYSTEM_NAME = "215"
    SERVICE_READY = "220"
    CLOSING_CONTROL_CONNECTION = "221"
    NO_TRANSFER_IN_PROGRESS = "225"
    CLOSING_DATA_CONNECTION = "226"
    ENTERING_PASSIVE_MODE = "227"
    USER_LOGGED_IN = "230"
    FILE_ACTION_COMPLETED = "250"
    PATHNAME_CREATED = "257"
    NEED_PASSWORD = "331"
    FILE_ACTION_PENDING = "350"
    TRANSFER_ABORTED = "426"


class CodeClass(Enum):
    """Reply category given by the first digit of a code."""
    PRELIMINARY = "1"
    COMPLETION = "2"
    INTERMEDIATE = "3"
    TRANSIENT_NEGATIVE = "4"
    PERMANENT_NEGATIVE = "5"
    UNKNOWN = ""

    @classmethod
    def of(cls, code: str) -> "CodeClass":
        """Classify a 3-character code string."""
        for member in cls:
            if member.value and code[:1] == member.value:
                return member
        return cls.UNKNOWN


def is_preliminary(code: str) -> bool:
    """True for 1xx replies (more replies will follow)."""
    return CodeClass.of(code) == CodeClass.PRELIMINARY


def is_completion(code: str) -> bool:
    """True for 2xx replies."""
    return CodeClass.of(code) == CodeClass.COMPLETION


class TransferType(Enum):
    """Data representation selected with TYPE."""
    ASCII = "A"
    BINARY = "I"


class StatusType(Enum):
    """Kind of information returned by STAT."""
    GENERAL = "status"
    FILE = "file status"
    DIRECTORY = "directory status"

    @classmethod
    def from_code(cls, code: str) -> "StatusType":
        """
        Map a STAT reply code to its status type.

        Raises:
            KeyError: If the code is not a status reply
        """
        return _STATUS_BY_CODE[code]


_STATUS_BY_CODE = {
    ResponseCode.SYSTEM_STATUS.value: StatusType.GENERAL,
    ResponseCode.DIRECTORY_STATUS.value: StatusType.DIRECTORY,
    ResponseCode.FILE_STATUS.value: StatusType.FILE,
}
