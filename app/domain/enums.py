from enum import Enum


class ConversationStatus(str, Enum):
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    CLOSED = "CLOSED"


class SenderType(str, Enum):
    CUSTOMER = "CUSTOMER"
    EMPLOYEE = "EMPLOYEE"


class EmployeeRole(str, Enum):
    ADMIN = "ADMIN"
    AGENT = "AGENT"


class TransitionAction(str, Enum):
    ASSIGN = "assign"
    UNASSIGN = "unassign"
    CLOSE = "close"
