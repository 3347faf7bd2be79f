# quantfmt/units/utils.py
import re
import unicodedata

_SUPERSCRIPTS = str.maketrans("0123456789-", "⁰¹²³⁴⁵⁶⁷⁸⁹⁻")
_POWER_RE = re.compile(r"\^\(?(-?\d+)\)?")
_WS_RE = re.compile(r"\s+")


def _sup(n: int) -> str:
    return ("" if n == 1 else str(n).translate(_SUPERSCRIPTS))


def superscript_powers(text: str) -> str:
    """Rewrite ASCII powers as superscripts: 'ft^2' -> 'ft²', 'm^(3)' -> 'm³'."""
    return _POWER_RE.sub(lambda m: _sup(int(m.group(1))), text)


def normalize_text(text: str) -> str:
    """NFC-normalize, superscript powers and collapse runs of whitespace."""
    if not text:
        return text
    text = unicodedata.normalize("NFC", text)
    text = superscript_powers(text)
    return _WS_RE.sub(" ", text).strip()


def normalize_label(label: str) -> str:
    """Lookup key for a unit label or alias (case-insensitive)."""
    return normalize_text(label).casefold()
