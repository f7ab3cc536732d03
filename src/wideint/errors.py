class WideIntError(Exception):
    """Base class for errors raised by wideint."""


class DivisionByZero(WideIntError, ZeroDivisionError):
    def __init__(self, message: str = "division by zero"):
        super().__init__(message)


class MalformedInput(WideIntError, ValueError):
    def __init__(self, text, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"cannot convert {text!r}: {reason}")
