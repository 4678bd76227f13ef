import enum


class Status(enum.Enum):
    SUCCESS = "00"
    FAILURE = "01"


class RspCode(enum.Enum):
    """Acknowledgement codes returned to a gateway on IPN.

    VNPay reads these as strings, MoMo as integers (``int(code.value)``).
    """
    SUCCESS = "00"
    ORDER_NOT_FOUND = "01"
    ORDER_ALREADY_CONFIRMED = "02"
    CHECKSUM_FAILED = "97"
    UNKNOWN_ERROR = "99"
