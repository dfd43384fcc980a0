from enum import Enum

class Direction(str, Enum):
    UP    = "up"
    DOWN  = "down"
    LEFT  = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

class NotifyKind(str, Enum):
    SUCCESS = "success"
    ERROR   = "error"
    INFO    = "info"
