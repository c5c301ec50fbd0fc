"""
Text helpers for catalog records: slugs and default codes.
"""

import re
from typing import Optional

# Turkish letters folded to ASCII for slugs and folder names
TRANSLIT_MAP = {
    'ç': 'c', 'ğ': 'g', 'ı': 'i', 'ö': 'o', 'ş': 's', 'ü': 'u',
    'Ç': 'C', 'Ğ': 'G', 'İ': 'I', 'Ö': 'O', 'Ş': 'S', 'Ü': 'U',
    'â': 'a', 'î': 'i', 'û': 'u',
}


def transliterate(text: str) -> str:
    """
    Fold Turkish characters to their ASCII counterparts.

    Example:
        >>> transliterate("Şişe Açacağı")
        'Sise Acacagi'
    """
    return ''.join(TRANSLIT_MAP.get(char, char) for char in text)


def slugify(text: str) -> str:
    """
    Lower-case ASCII slug with runs of other characters collapsed to "-".

    Example:
        >>> slugify("  Ev & Yaşam Ürünleri ")
        'ev-yasam-urunleri'
    """
    folded = transliterate(text or "").lower()
    return re.sub(r'[^a-z0-9]+', '-', folded).strip('-')


def default_code(name: str) -> str:
    """First two characters of the name, upper-cased ("Kitchen" -> "KI")."""
    return (name or "").strip()[:2].upper()


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Strip a string; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None
