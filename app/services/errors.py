from uuid import UUID


class InvalidMessageError(ValueError):
    code = "InvalidMessage"

    def __init__(self, detail: str = "Either content or image is required") -> None:
        super().__init__(detail)


class ConversationNotFoundError(LookupError):
    code = "ConversationNotFound"

    def __init__(self, conversation_id: UUID) -> None:
        super().__init__(f"Conversation '{conversation_id}' not found")
        self.conversation_id = conversation_id


class ConversationAccessDeniedError(PermissionError):
    code = "Forbidden"

    def __init__(self, conversation_id: UUID) -> None:
        super().__init__(
            f"Conversation '{conversation_id}' does not belong to the current customer"
        )
        self.conversation_id = conversation_id


class ConversationClosedError(ValueError):
    code = "ConversationClosed"

    def __init__(self, conversation_id: UUID) -> None:
        super().__init__(f"Conversation '{conversation_id}' is closed and read-only")
        self.conversation_id = conversation_id


class SenderBlockedError(PermissionError):
    code = "SenderBlocked"

    def __init__(self, customer_id: UUID) -> None:
        super().__init__("You have been blocked from sending messages")
        self.customer_id = customer_id


class NotAssignedError(PermissionError):
    code = "NotAssigned"

    def __init__(self, conversation_id: UUID, employee_id: UUID) -> None:
        super().__init__(
            f"Employee '{employee_id}' is not assigned to conversation '{conversation_id}'"
        )
        self.conversation_id = conversation_id
        self.employee_id = employee_id


class StoreUnavailableError(RuntimeError):
    code = "StoreUnavailable"

    def __init__(self, detail: str = "Message store is unavailable") -> None:
        super().__init__(detail)


class TenantAccessDeniedError(PermissionError):
    code = "Forbidden"

    def __init__(self, detail: str = "Forbidden: Company access denied") -> None:
        super().__init__(detail)


class AdminRequiredError(PermissionError):
    code = "Forbidden"

    def __init__(self) -> None:
        super().__init__("Forbidden: Admin access required")


class AuthenticationError(PermissionError):
    code = "Unauthorized"

    def __init__(self, detail: str = "Invalid email or password") -> None:
        super().__init__(detail)


class CompanyNotFoundError(LookupError):
    code = "CompanyNotFound"

    def __init__(self, slug: str) -> None:
        super().__init__(f"Company '{slug}' not found")
        self.slug = slug


class CustomerNotFoundError(LookupError):
    code = "CustomerNotFound"

    def __init__(self, customer_id: UUID) -> None:
        super().__init__(f"Customer '{customer_id}' not found")
        self.customer_id = customer_id


class EmployeeNotFoundError(LookupError):
    code = "EmployeeNotFound"

    def __init__(self, employee_id: UUID) -> None:
        super().__init__(f"Employee '{employee_id}' not found")
        self.employee_id = employee_id


class EmailAlreadyRegisteredError(ValueError):
    code = "EmailAlreadyRegistered"

    def __init__(self, email: str) -> None:
        super().__init__("Email already registered")
        self.email = email


class SelfDeletionError(ValueError):
    code = "InvalidRequest"

    def __init__(self) -> None:
        super().__init__("You cannot delete your own account")


class InvalidAssigneeError(ValueError):
    code = "InvalidAssignee"

    def __init__(self, employee_id: UUID) -> None:
        super().__init__(f"Employee '{employee_id}' cannot be assigned to this conversation")
        self.employee_id = employee_id
