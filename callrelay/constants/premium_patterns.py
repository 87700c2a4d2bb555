"""Premium and suspicious destination patterns.

Patterns match the destination with every non-digit removed, so country
codes appear without the leading "+". Control characters (* and #) are
checked against the raw input before stripping.
"""

# Layer 1: primary premium patterns
PRIMARY_PREMIUM_PATTERNS = (
    r"^1\d{4}$",  # 12345 five-digit premium short codes
    r"^0900\d+$",
    r"^090\d+$",
    r"^1(?:800|900|976)\d{7}$",  # North American toll-free/premium
    r"^3591\d{3,4}$",  # Bulgarian short premium with country code
    r"^18\d{2}$",
    r"^19\d{2}$",
    r"^0901\d+$",
    r"^0902\d+$",
    r"^0903\d+$",
)

# Layer 2: extended premium families and country/premium combinations
EXTENDED_PREMIUM_PATTERNS = (
    r"^090[4-9]\d+$",
    r"^35990\d+$",  # Bulgarian 0900-0909 with country code
    r"^1[0-9]{4,5}$",  # broad 1xxxx protection
    r"^1900\d+$",  # US premium
    r"^1976\d+$",  # Caribbean premium
    r"^44900\d+$",  # UK premium
    r"^49900\d+$",  # German premium
    r"^33899\d+$",  # French premium
)

# Layer 3: suspicious shapes (digits-only form)
SUSPICIOUS_SHAPE_PATTERNS = (
    r"^[0-9]{1,4}$",
    r"^[0-9]{15,}$",
)

# Layer 3: raw-input control codes (USSD / star and hash codes)
CONTROL_CHARACTERS = ("*", "#")
