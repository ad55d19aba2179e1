"""Address normalization.

Profiles keep an address twice: structured fields (cep, street, number, ...)
and a legacy one-line ``address`` string. ``format_address`` derives the string
from the fields; ``parse_legacy_address`` goes the other way on a best-effort
basis. Only explicitly labelled parts (CEP, nº, complement) can be recovered;
whatever is left over is returned as ``remainder``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from marzan_loyalty.errors import ValidationError


ADDRESS_FIELDS = ("cep", "street", "number", "complement", "neighborhood", "city", "state")

_CEP_RE = re.compile(r"\bCEP\b[:\s]*(\d{5})-?(\d{3})\b", re.IGNORECASE)
_NUMBER_RE = re.compile(r"(?<![A-Za-z])(?:n\s*[º°]|no\.)\s*(\d+[A-Za-z]?|s/?n)\b", re.IGNORECASE)
_COMPLEMENT_LABEL_RE = re.compile(r"\bComplemento\s*:\s*(.+)$", re.IGNORECASE)
_COMPLEMENT_TOKEN_RE = re.compile(
    r"\b(?:apto|apartamento|bloco|casa|sala|conjunto|loja)\b\.?\s*(?:\d+\w*|[A-Z]\b)"
    r"|\b\d+\s*[º°]?\s*andar\b"
    r"|\bandar\s*\d+\b",
    re.IGNORECASE,
)
_STATE_RE = re.compile(r"^[A-Za-z]{2}$")


@dataclass
class ParsedAddress:
    cep: str | None = None
    number: str | None = None
    complement: str | None = None
    remainder: str | None = None


def normalize_cep(value: str | None) -> str | None:
    """Return ``NNNNN-NNN`` or None for empty input; reject anything else."""
    digits = re.sub(r"\D", "", value or "")
    if not digits:
        return None
    if len(digits) != 8:
        raise ValidationError("CEP must have 8 digits")
    return f"{digits[:5]}-{digits[5:]}"


def normalize_state(value: str | None) -> str | None:
    v = (value or "").strip()
    if not v:
        return None
    if not _STATE_RE.match(v):
        raise ValidationError("State must be a two-letter code")
    return v.upper()


def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


def format_address(fields) -> str:
    """Build the one-line display address from structured fields.

    ``fields`` may be a mapping or any object exposing the address attributes.
    """

    def get(name: str) -> str:
        if isinstance(fields, dict):
            return _clean(fields.get(name))
        return _clean(getattr(fields, name, None))

    parts = []
    if get("street"):
        parts.append(get("street"))
    if get("number"):
        parts.append(f"nº{get('number')}")
    if get("complement"):
        parts.append(f"Complemento: {get('complement')}")
    if get("neighborhood"):
        parts.append(get("neighborhood"))

    city, state = get("city"), get("state")
    if city and state:
        parts.append(f"{city}/{state}")
    elif city or state:
        parts.append(city or state)

    if get("cep"):
        parts.append(f"CEP {get('cep')}")

    return ", ".join(parts)


def _cut(text: str, match: re.Match) -> str:
    return (text[: match.start()] + " " + text[match.end():]).strip()


def parse_legacy_address(text: str | None) -> ParsedAddress:
    result = ParsedAddress()
    if not text or not text.strip():
        return result

    complements: list[str] = []
    leftovers: list[str] = []

    for segment in text.split(","):
        seg = segment.strip()
        if not seg:
            continue

        if result.cep is None:
            m = _CEP_RE.search(seg)
            if m:
                result.cep = f"{m.group(1)}-{m.group(2)}"
                seg = _cut(seg, m)

        if result.number is None:
            m = _NUMBER_RE.search(seg)
            if m:
                result.number = m.group(1).upper() if "/" in m.group(1) else m.group(1)
                seg = _cut(seg, m)

        m = _COMPLEMENT_LABEL_RE.search(seg)
        if m:
            complements.append(m.group(1).strip())
            seg = _cut(seg, m)
        else:
            tokens = [t.group(0).strip() for t in _COMPLEMENT_TOKEN_RE.finditer(seg)]
            if tokens:
                complements.extend(tokens)
                seg = _COMPLEMENT_TOKEN_RE.sub(" ", seg)

        seg = re.sub(r"\s{2,}", " ", seg).strip(" -–/:")
        if seg:
            leftovers.append(seg)

    result.complement = ", ".join(complements) or None
    result.remainder = ", ".join(leftovers) or None
    return result


def merge_legacy_address(fields: dict, legacy: str | None) -> dict:
    """Fill empty cep/number/complement from the legacy string.

    Fields that are already set always win over the parsed ones.
    """
    merged = dict(fields)
    if not legacy:
        return merged
    if any(_clean(merged.get(k)) for k in ADDRESS_FIELDS):
        return merged

    parsed = parse_legacy_address(legacy)
    for key in ("cep", "number", "complement"):
        value = getattr(parsed, key)
        if value and not _clean(merged.get(key)):
            merged[key] = value
    merged["unparsed_address"] = parsed.remainder
    return merged
