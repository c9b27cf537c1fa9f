"""Static metadata for every material bucket."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

from .types import ClassificationResult, DetectedObject, MaterialInfo, MaterialType, RiskTier

MATERIAL_DATABASE: Mapping[MaterialType, MaterialInfo] = MappingProxyType(
    {
        MaterialType.PET: MaterialInfo(
            plastic_type="PET (Polyethylene Terephthalate)",
            plastic_code="1",
            decomposition_time="450 years",
            microplastic_risk=RiskTier.HIGH,
            eco_alternative="Stainless steel or glass bottle",
            description="PET is used for drink bottles. Look for recycling code #1.",
            display_name="PET Plastic Bottle",
        ),
        MaterialType.HDPE: MaterialInfo(
            plastic_type="HDPE (High-Density Polyethylene)",
            plastic_code="2",
            decomposition_time="500 years",
            microplastic_risk=RiskTier.MEDIUM,
            eco_alternative="Glass or stainless steel container",
            description="HDPE is used for milk jugs and detergent bottles. Safer than PET.",
            display_name="HDPE Plastic Container",
        ),
        MaterialType.PVC: MaterialInfo(
            plastic_type="PVC (Polyvinyl Chloride)",
            plastic_code="3",
            decomposition_time="1000+ years",
            microplastic_risk=RiskTier.HIGH,
            eco_alternative="Metal pipes or natural materials",
            description="PVC releases dioxins when burned.",
            display_name="PVC Pipe/Product",
        ),
        MaterialType.LDPE: MaterialInfo(
            plastic_type="LDPE (Low-Density Polyethylene)",
            plastic_code="4",
            decomposition_time="500 years",
            microplastic_risk=RiskTier.MEDIUM,
            eco_alternative="Cloth bag or biodegradable bag",
            description="LDPE is used for shopping bags and cling wrap. Hard to recycle.",
            display_name="Plastic Bag",
        ),
        MaterialType.PP: MaterialInfo(
            plastic_type="PP (Polypropylene)",
            plastic_code="5",
            decomposition_time="500 years",
            microplastic_risk=RiskTier.MEDIUM,
            eco_alternative="Glass or bamboo container",
            description="PP is used for straws, bottle caps and hot food containers.",
            display_name="Polypropylene Product",
        ),
        MaterialType.PS: MaterialInfo(
            plastic_type="PS (Polystyrene/Styrofoam)",
            plastic_code="6",
            decomposition_time="500-1000 years",
            microplastic_risk=RiskTier.HIGH,
            eco_alternative="Paper or leaf-based packaging",
            description="Styrofoam breaks apart into microplastics very easily.",
            display_name="Styrofoam",
        ),
        MaterialType.NON_PLASTIC: MaterialInfo(
            plastic_type="Non-plastic",
            plastic_code="-",
            decomposition_time="Varies by material",
            microplastic_risk=RiskTier.LOW,
            eco_alternative="Reuse or compost where possible",
            description="The object does not look like plastic.",
            display_name="Non-plastic Object",
        ),
        MaterialType.OTHER: MaterialInfo(
            plastic_type="Other (Mixed Plastic)",
            plastic_code="7",
            decomposition_time="Unknown",
            microplastic_risk=RiskTier.HIGH,
            eco_alternative="Avoid when possible",
            description="Code 7 plastics are mixtures and are hard to recycle.",
            display_name="Mixed Plastic",
        ),
    }
)

# Checked in order; the first hint found in the filename wins.
_FILENAME_NAME_HINTS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("botol", "bottle"), "Plastic Bottle"),
    (("sedotan", "straw"), "Plastic Straw"),
    (("kantong", "kresek", "bag"), "Plastic Bag"),
    (("gelas", "cup"), "Plastic Cup"),
    (("tutup", "cap", "lid"), "Bottle Cap"),
    (("styro", "foam"), "Styrofoam"),
)


def material_info(material: MaterialType) -> MaterialInfo:
    return MATERIAL_DATABASE[material]


def object_name(material: MaterialType, filename: Optional[str] = None) -> str:
    """Pick a display name, preferring what the filename says the object is."""

    if filename:
        lowered = filename.lower()
        for hints, name in _FILENAME_NAME_HINTS:
            if any(hint in lowered for hint in hints):
                return name
    return MATERIAL_DATABASE[material].display_name


def build_detected_object(
    result: ClassificationResult,
    filename: Optional[str] = None,
    name_suffix: str = "",
) -> DetectedObject:
    info = material_info(result.material)
    return DetectedObject(
        name=object_name(result.material, filename) + name_suffix,
        material=result.material,
        confidence=result.confidence,
        plastic_type=info.plastic_type,
        plastic_code=info.plastic_code,
        decomposition_time=info.decomposition_time,
        microplastic_risk=info.microplastic_risk,
        eco_alternative=info.eco_alternative,
        description=info.description,
        reasoning=result.reasoning,
    )
