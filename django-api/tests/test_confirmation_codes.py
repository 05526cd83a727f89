"""Unit tests for ConfirmationCodeGenerator.

Run with: pytest tests/test_confirmation_codes.py -v
"""

import re

from registrations.services.confirmation_codes import ALPHABET, ConfirmationCodeGenerator


class TestConfirmationCodeGenerator:
    """Tests for confirmation code format."""

    def test_codes_match_public_format(self):
        """Every code is 8 characters of A-Z or 0-9."""
        generator = ConfirmationCodeGenerator()
        for _ in range(200):
            assert re.fullmatch(r"[A-Z0-9]{8}", generator.generate().value)

    def test_alphabet_has_36_symbols(self):
        """Codes draw from uppercase letters and digits only."""
        assert len(ALPHABET) == 36
        assert len(set(ALPHABET)) == 36

    def test_codes_vary(self):
        """Consecutive codes are not all identical."""
        generator = ConfirmationCodeGenerator()
        assert len({generator.generate().value for _ in range(50)}) > 1
