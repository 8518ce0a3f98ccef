"""
Part records and the normalization of raw Nexar search results into them.

Nexar returns deeply nested, partially populated records. ``normalize_part``
flattens one ``part`` payload into a ``Part`` whose required fields are always
present and whose optional fields are only set when the source has them.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

DEFAULT_CURRENCY = "USD"
DEFAULT_QUANTITY = 1


@dataclass
class Part:
    """One matched component, shaped for a bill of materials."""
    mpn: str
    manufacturer: str
    description: str
    price: float = 0.0
    currency: str = DEFAULT_CURRENCY
    quantity: int = DEFAULT_QUANTITY
    voltage: Optional[str] = None
    package: Optional[str] = None
    interfaces: List[str] = field(default_factory=list)
    datasheet: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary, leaving out optional fields that are unset."""
        data: Dict[str, Any] = {
            "mpn": self.mpn,
            "manufacturer": self.manufacturer,
            "description": self.description,
            "price": self.price,
            "currency": self.currency,
            "quantity": self.quantity,
        }
        if self.voltage:
            data["voltage"] = self.voltage
        if self.package:
            data["package"] = self.package
        if self.interfaces:
            data["interfaces"] = list(self.interfaces)
        if self.datasheet:
            data["datasheet"] = self.datasheet
        return data


def _set_voltage(part: Part, value: str) -> None:
    part.voltage = value


def _set_package(part: Part, value: str) -> None:
    part.package = value


def _append_interfaces(part: Part, value: str) -> None:
    part.interfaces.extend(token.strip() for token in value.split(",") if token.strip())


def _contains_any(*needles: str) -> Callable[[str], bool]:
    return lambda name: any(needle in name for needle in needles)


# Evaluated in order against the lower-cased attribute shortname. Only the
# first matching rule applies to a spec entry. voltage and package are
# overwritten by every later matching entry; interfaces accumulate.
SPEC_RULES = (
    (_contains_any("voltage", "vdd"), _set_voltage),
    (_contains_any("package", "case"), _set_package),
    (_contains_any("interface", "protocol", "communication"), _append_interfaces),
)


def _coerce_price(value: Any) -> float:
    """Parse a price node value, falling back to 0.0 for anything unusable."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        price = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(price) or price < 0:
        return 0.0
    return price


def apply_specs(part: Part, specs: Optional[List[Dict[str, Any]]]) -> None:
    """Classify attribute/value pairs into voltage, package and interfaces."""
    for spec in specs or []:
        if not isinstance(spec, dict):
            continue
        attribute = spec.get("attribute") or {}
        value_node = spec.get("value") or {}
        name = (attribute.get("shortname") or "").lower()
        value = value_node.get("text") or ""

        for matches, assign in SPEC_RULES:
            if matches(name):
                assign(part, value)
                break


def normalize_part(raw: Dict[str, Any]) -> Part:
    """
    Flatten one Nexar ``part`` payload.

    Args:
        raw: The ``part`` object from a ``supSearch`` result

    Returns:
        The normalized Part
    """
    mpn = raw.get("mpn") or ""
    manufacturer = (raw.get("manufacturer") or {}).get("name") or ""
    description = raw.get("shortDescription") or f"{manufacturer} {mpn}"

    price_node = raw.get("medianPrice1000") or {}

    part = Part(
        mpn=mpn,
        manufacturer=manufacturer,
        description=description,
        price=_coerce_price(price_node.get("price")),
        currency=price_node.get("currency") or DEFAULT_CURRENCY,
    )

    apply_specs(part, raw.get("specs"))

    datasheet = (raw.get("bestDatasheet") or {}).get("url")
    if datasheet:
        part.datasheet = datasheet

    return part


def normalize_search_response(payload: Dict[str, Any]) -> List[Part]:
    """
    Extract and normalize every result of a ``supSearch`` response body.

    Missing nested containers count as an empty result list. Results without
    a ``part`` payload are skipped. Upstream order is preserved.
    """
    data = payload.get("data") or {}
    search = data.get("supSearch") or {}
    results = search.get("results") or []

    parts = []
    for result in results:
        raw = (result or {}).get("part")
        if not raw:
            continue
        parts.append(normalize_part(raw))
    return parts
