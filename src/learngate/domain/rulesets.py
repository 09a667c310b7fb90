"""
Endpoint rule sets.

Compiled at import time; a malformed rule string aborts startup.
"""

from functools import lru_cache

from .rules import RuleSet

REGISTER = RuleSet(
    {
        "email": "required|email",
        "name": "required|string|min:2|max:50",
        "password": "required|string|min:6|max:50",
    }
)

LOGIN = RuleSet(
    {
        "email": "required|email",
        "password": "required|string",
    }
)

FORGOT_PASSWORD = RuleSet({"email": "required|email"})

RESET_PASSWORD = RuleSet(
    {
        "token": "required|string",
        "password": "required|string|min:6|max:50",
    }
)

CHANGE_PASSWORD = RuleSet(
    {
        "currentPassword": "required|string|min:6",
        "newPassword": "required|string|min:6|max:50",
    }
)


@lru_cache
def verify_email_rules(code_length: int) -> RuleSet:
    """The code must be exactly as long as the codes being issued."""
    return RuleSet({"code": f"required|string|min:{code_length}|max:{code_length}"})
