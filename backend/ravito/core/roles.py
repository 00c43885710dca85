from enum import Enum


class Role(str, Enum):
    admin = "admin"
    client = "client"
    supplier = "supplier"


class ApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


ADMIN_ROLES = {Role.admin}
SELF_REGISTER_ROLES = {Role.client, Role.supplier}
