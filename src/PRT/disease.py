"""
Disease catalog.

Defines the closed, ordered vocabulary of disease categories a patient
record can be annotated with, plus the short names used in compact listings.
"""

# Ordered; export and template columns follow this order
DISEASES: tuple[str, ...] = (
    "Blood & Blood Components",
    "Cardiovascular",
    "Development Anomalies",
    "Endocrine Nutrition and Metabolic",
    "ENT",
    "Gastro and Digestive",
    "Infectious",
    "Neurology",
    "OB",
    "Oncology",
    "Ortho",
    "Pulmo",
    "Renal",
    "Surgery",
    "Trauma",
    "Urology",
    "Psych",
    "Primary Care",
    "Hepa",
)

DISEASE_SHORTCUTS: dict[str, str] = {
    "Blood & Blood Components": "Blood",
    "Cardiovascular": "Cardio",
    "Development Anomalies": "Dev Anomalies",
    "Endocrine Nutrition and Metabolic": "Endocrine",
    "ENT": "ENT",
    "Gastro and Digestive": "Gastro",
    "Infectious": "Infectious",
    "Neurology": "Neuro",
    "OB": "OB",
    "Oncology": "Oncology",
    "Ortho": "Ortho",
    "Pulmo": "Pulmo",
    "Renal": "Renal",
    "Surgery": "Surgery",
    "Trauma": "Trauma",
    "Urology": "Urology",
    "Psych": "Psych",
    "Primary Care": "Primary",
    "Hepa": "Hepa",
}

_DISEASE_SET = frozenset(DISEASES)


def is_disease(label: str) -> bool:
    """
    True only for an exact (case-sensitive) catalog label.
    """
    return label in _DISEASE_SET


def get_disease_short_name(label: str) -> str:
    return DISEASE_SHORTCUTS.get(label, label)


def resolve_disease(label: str) -> str:
    """
    Map user input (full label or short name, any casing) onto a catalog label.
    Raises ValueError if nothing matches.
    """
    key = label.strip().casefold()
    for disease in DISEASES:
        if key in (disease.casefold(), DISEASE_SHORTCUTS[disease].casefold()):
            return disease
    raise ValueError(f"Unknown disease label: {label!r}")
