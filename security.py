"""
Input validation for values that reach the display surface.

Colors and free text arrive from the init data file or the desktop shell
and are checked here before anything renders them.
"""

import re
from dataclasses import dataclass
from typing import Optional
from core.exceptions import ScoreboardError
from core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_BACKGROUND_COLOR = "#ff55ff"

# #rgb or #rrggbb only, lowercase after normalization
HEX_COLOR_PATTERN = re.compile(r'^#([0-9a-f]{6}|[0-9a-f]{3})$')


class SecurityError(ScoreboardError):
    """Raised when security validation fails"""
    pass


class InputValidationError(SecurityError):
    """Raised when input validation fails"""
    pass


@dataclass
class ColorValidation:
    """Result of validating a color string"""
    valid: bool
    normalized_color: Optional[str] = None
    error: Optional[str] = None


def validate_hex_color(color) -> ColorValidation:
    """
    Validate a hex color code and normalize it.

    Accepts #rgb and #rrggbb, case-insensitive, surrounding whitespace ignored.
    3-digit colors are expanded so callers always get lowercase #rrggbb.

    Args:
        color: Untrusted color value

    Returns:
        ColorValidation with the normalized color or an error message
    """
    if not isinstance(color, str) or not color.strip():
        return ColorValidation(valid=False, error="Color must be a non-empty string")

    normalized = color.strip().lower()
    if not HEX_COLOR_PATTERN.match(normalized):
        return ColorValidation(
            valid=False,
            error="Color must be in hex format (#rrggbb or #rgb). Example: #ff55ff"
        )

    if len(normalized) == 4:
        r, g, b = normalized[1], normalized[2], normalized[3]
        normalized = f"#{r}{r}{g}{g}{b}{b}"

    return ColorValidation(valid=True, normalized_color=normalized)


class InputSanitizer:
    """Sanitizes free-text fields shown on the board"""

    SCRIPT_PATTERNS = [
        r'<script[^>]*>.*?</script>',
        r'javascript:',
        r'vbscript:',
        r'on\w+\s*=',
    ]

    MAX_LENGTHS = {
        'text': 200,
        'title': 100,
        'team': 50,
    }

    @classmethod
    def sanitize_text(cls, text, input_type: str = 'text',
                      strict: bool = False) -> str:
        """
        Sanitize text input for display.

        Args:
            text: Input text to sanitize
            input_type: Type of input (selects the length limit)
            strict: If True, dangerous content raises instead of being stripped

        Returns:
            Sanitized text

        Raises:
            InputValidationError: If input fails validation
        """
        if not isinstance(text, str):
            raise InputValidationError("Input must be a string")

        max_length = cls.MAX_LENGTHS.get(input_type, cls.MAX_LENGTHS['text'])
        if len(text) > max_length:
            raise InputValidationError(f"Input too long: {len(text)} > {max_length}")

        if not text.strip():
            return text.strip()

        for pattern in cls.SCRIPT_PATTERNS:
            if re.search(pattern, text, re.IGNORECASE):
                logger.warning(f"Potential script injection detected: {pattern}")
                if strict:
                    raise InputValidationError("Potentially dangerous content detected")
                text = re.sub(pattern, '', text, flags=re.IGNORECASE)

        # Normalize whitespace
        text = ' '.join(text.split())

        return text
