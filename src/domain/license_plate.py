import re
from typing import Optional

PLATE_PATTERNS = {
    "france": r"^[A-Z]{2}[-\s]?\d{3}[-\s]?[A-Z]{2}$",
    "morocco": r"^(\d{3,5}[-\s|]?[A-Z]{1,2}[-\s|]?\d{1,2})|([A-Z]{2,3}[-\s]?\d{4,6})$",
    "germany": r"^[A-Z]{1,3}[-\s][A-Z]{1,2}[-\s]\d{1,4}[EH]?$",
    "spain": r"^\d{4}[-\s]?[A-Z]{3}$",
    "belgium": r"^[12][-\s]?[A-Z]{3}[-\s]?\d{3}$",
    "uk": r"^[A-Z]{2}\d{2}[-\s]?[A-Z]{3}$",
    "usa": r"^[A-Z0-9]{4,8}$",
}

GENERIC_PATTERN = r"^(?=.*[A-Z]{2,})(?=.*\d{2,})[A-Z0-9\-\s]{4,20}$"

FORBIDDEN_CHARS = set("@#$%&*()!?+=<>/\\\"';:,.{}[]~`")

RESERVED_PLATES = {
    "TEST", "FAKE", "NULL", "VOID", "NONE", "NA", "ADMIN",
    "XXX", "XXXX", "000", "0000", "00000", "AAAA", "ZZZZ",
    "POLICE", "ARMY", "GOVT", "VIP", "FBI", "CIA",
}


def license_plate_error(value: str) -> Optional[str]:
    """Return why ``value`` is not an acceptable plate, or None when it is."""
    plate = value.strip().upper()

    if len(plate) < 4:
        return "The license plate must be at least 4 characters."
    if len(plate) > 20:
        return "The license plate cannot exceed 20 characters."

    bad = sorted(FORBIDDEN_CHARS.intersection(plate))
    if bad:
        return f"The license plate contains invalid characters ({bad[0]})."

    clean = re.sub(r"[^A-Z0-9]", "", plate)
    if clean in RESERVED_PLATES:
        return "This license plate is reserved and not allowed."

    if not re.search(r"[A-Z]", plate) or not re.search(r"\d", plate):
        return "The license plate must contain both letters and numbers."
    if len(clean) < 4:
        return "The license plate must contain at least 4 alphanumeric characters."

    if not any(re.match(pattern, plate) for pattern in PLATE_PATTERNS.values()):
        if not re.match(GENERIC_PATTERN, plate):
            return "Invalid license plate format. Use at least 2 letters and 2 numbers (e.g. AB-1234)."

    if re.search(r"(.)\1{4,}", clean):
        return "The license plate contains too many repeated characters."

    return None


def normalize_license_plate(value: str) -> str:
    """Uppercase, drop everything but letters, digits and dashes.

    French plates typed without separators get them back: AB123CD -> AB-123-CD.
    """
    plate = re.sub(r"[^A-Za-z0-9\-]", "", value).upper()
    match = re.match(r"^([A-Z]{2})(\d{3})([A-Z]{2})$", plate)
    if match:
        return "-".join(match.groups())
    return plate
