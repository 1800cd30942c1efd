from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    DEALER = "DEALER"
    CLIENT = "CLIENT"
