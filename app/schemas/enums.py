from enum import Enum


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class TargetGender(str, Enum):
    ALL = "All"
    MALE = "Male"
    FEMALE = "Female"


class UsageLimit(str, Enum):
    UNLIMITED = "Unlimited"
    SINGLE = "Single"


class TargetMode(str, Enum):
    ALL = "All"
    PERSONAM = "Personam"


class Actor(str, Enum):
    USER = "user"
    SHOP = "shop"


class CardStatus(str, Enum):
    NOT_FOUND = "NotFound"
    PRE_REGISTERED = "PreRegistered"
    ACTIVE = "Active"


class PromotionStatus(str, Enum):
    NOT_APPLICABLE = "NOT_APPLICABLE"
    PENDING_USER_ACTIVATION = "PENDING_USER_ACTIVATION"
    READY = "READY"
    CONSUMED = "CONSUMED"
