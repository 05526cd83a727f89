"""Confirmation code generation."""

import secrets
import string

from registrations.domain import ConfirmationCode

ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


class ConfirmationCodeGenerator:
    """Issues 8-character codes drawn uniformly from [A-Z0-9].

    Uniqueness is not guaranteed here; callers check the store and retry.
    """

    def generate(self) -> ConfirmationCode:
        return ConfirmationCode("".join(secrets.choice(ALPHABET) for _ in range(CODE_LENGTH)))
