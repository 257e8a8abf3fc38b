"""Who is sending a message.

Customers are identity-scoped by their customer id and never carry a sender id
on the stored message. Employees arrive pre-authenticated and tenant-scoped by
the access-control layer.
"""

from dataclasses import dataclass
from uuid import UUID

from app.domain.enums import SenderType


@dataclass(frozen=True, slots=True)
class CustomerSender:
    customer_id: UUID

    @property
    def sender_type(self) -> SenderType:
        return SenderType.CUSTOMER

    @property
    def sender_id(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class EmployeeSender:
    employee_id: UUID
    company_id: UUID
    is_admin: bool = False

    @property
    def sender_type(self) -> SenderType:
        return SenderType.EMPLOYEE

    @property
    def sender_id(self) -> UUID:
        return self.employee_id


Sender = CustomerSender | EmployeeSender
