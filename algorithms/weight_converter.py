import re


class WeightConverter:
    """Utility for converting and formatting weights in kg and lbs."""

    KG_TO_LB = 2.205
    UNITS = ("kg", "lbs")
    _PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*(kg|lbs?)$", re.IGNORECASE)

    @staticmethod
    def kg_to_lb(kg: float) -> float:
        return round(kg * WeightConverter.KG_TO_LB, 2)

    @staticmethod
    def lb_to_kg(lb: float) -> float:
        return round(lb / WeightConverter.KG_TO_LB, 2)

    @classmethod
    def convert(cls, weight: float, from_unit: str, to_unit: str) -> float:
        """Convert ``weight`` between ``kg`` and ``lbs``."""
        for unit in (from_unit, to_unit):
            if unit not in cls.UNITS:
                raise ValueError(f"unknown unit: {unit}")
        if from_unit == to_unit:
            return weight
        if from_unit == "kg":
            return cls.kg_to_lb(weight)
        return cls.lb_to_kg(weight)

    @staticmethod
    def format(weight: float, unit: str) -> str:
        if float(weight).is_integer():
            return f"{int(weight)} {unit}"
        return f"{weight:g} {unit}"

    @classmethod
    def parse(cls, text: str) -> tuple[float, str] | None:
        """Parse strings like ``"100 kg"`` or ``"225lb"`` into ``(value, unit)``."""
        match = cls._PATTERN.match(text.strip())
        if not match:
            return None
        unit = "lbs" if match.group(2).lower().startswith("lb") else "kg"
        return float(match.group(1)), unit
