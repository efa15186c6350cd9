"""Attack request failures, reported to callers as structured results."""


class AttackError(Exception):
    """Base class for problems detected before any die is rolled."""
    code = "AttackError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidNotation(AttackError, ValueError):
    """Damage notation does not match ``[count]d<size>[(+|-)bonus]``."""
    code = "InvalidNotation"


class NegativeSkillTotal(AttackError):
    code = "NegativeSkillTotal"


class NonPositiveDefense(AttackError):
    code = "NonPositiveDefense"


class InvalidAttackCount(AttackError):
    code = "InvalidAttackCount"


class MissingField(AttackError):
    """A required request field is absent."""
    code = "MissingField"

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Missing required fields: {', '.join(fields)}")


class MalformedRequest(AttackError):
    """The payload could not be decoded into a request at all."""
    code = "MalformedRequest"
