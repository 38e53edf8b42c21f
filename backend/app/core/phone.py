"""
Phone number helpers for Saudi mobile numbers

Two spellings coexist in stored data:
- local:         05XXXXXXXX   (what dashboards and the DB store)
- international: 9665XXXXXXXX (what the SMS gateway expects)
"""
import re
from typing import List


def normalize_phone(phone: str) -> str:
    """Convert a local Saudi mobile (05.../5...) to 966 international format"""
    cleaned = re.sub(r"\s+", "", phone.strip())
    if cleaned.startswith("05") and len(cleaned) == 10:
        return "966" + cleaned[1:]
    if cleaned.startswith("5") and len(cleaned) == 9:
        return "966" + cleaned
    return cleaned


def denormalize_phone(phone: str) -> str:
    """Convert 9665XXXXXXXX back to 05XXXXXXXX for storage"""
    if phone.startswith("966") and len(phone) == 12:
        return "0" + phone[3:]
    return phone


def phone_variants(phone: str) -> List[str]:
    """Both spellings of a phone number, local first"""
    international = normalize_phone(phone)
    local = denormalize_phone(international)
    if local == international:
        return [local]
    return [local, international]


def generate_numeric_id(doc_id: str) -> int:
    """Numeric ID derived from a document ID (first 10 chars read as base 36)"""
    return int(doc_id[:10], 36)
