# Static catalogs - surfaces, FDI layout, diagnosis/procedure options, procedure costs
from typing import Dict, List, Tuple

SURFACE_CODES: List[str] = ["O", "M", "D", "B", "L"]

SURFACE_LABELS: Dict[str, str] = {
    "O": "Occlusal",
    "M": "Mesial",
    "D": "Distal",
    "B": "Buccal",
    "L": "Lingual",
}

# FDI layout as drawn on the chart:
# Upper: 18..11 | 21..28
# Lower: 48..41 | 31..38
UPPER_LEFT_TO_RIGHT: Tuple[str, ...] = (
    "18", "17", "16", "15", "14", "13", "12", "11",
    "21", "22", "23", "24", "25", "26", "27", "28",
)
LOWER_LEFT_TO_RIGHT: Tuple[str, ...] = (
    "48", "47", "46", "45", "44", "43", "42", "41",
    "31", "32", "33", "34", "35", "36", "37", "38",
)

DIAGNOSIS_OPTIONS: Tuple[str, ...] = (
    "No findings",
    "Caries (suspected)",
    "Lesion / risk",
    "Sensitivity / wear",
    "Fracture / fissure",
    "Infection / abscess (suspected)",
    "Requires evaluation",
)

PROCEDURE_OPTIONS: Tuple[str, ...] = (
    "Prophylaxis",
    "Sealant",
    "Resin restoration",
    "Evaluation + resin restoration (mock)",
    "Inlay (mock)",
    "Endodontics (mock)",
    "Extraction",
    "Control / Follow-up",
    "Clinical evaluation",
)

DEFAULT_DIAGNOSIS = "Requires evaluation"
DEFAULT_PROCEDURE = "Clinical evaluation"

# procedure -> (minutes, fee USD)
# NOTE: keys do not overlap the recommendation vocabulary above (only
# "Clinical evaluation" and "Extraction" do), so most recommended procedures
# price at DEFAULT_COST. Kept as-is; do not add rows here to paper over it.
PROCEDURE_COST_CATALOG: Dict[str, Tuple[int, float]] = {
    "Clinical evaluation": (20, 75),
    "Dental cleaning": (45, 120),
    "Filling (composite)": (45, 220),
    "Filling (amalgam)": (45, 200),
    "Root canal therapy": (90, 950),
    "Crown placement": (90, 1200),
    "Extraction": (45, 280),
    "Periodontal scaling": (60, 350),
    "Fluoride treatment": (15, 35),
    "Sealant application": (20, 60),
    "X-rays": (15, 45),
}

DEFAULT_COST: Tuple[int, float] = (30, 150)

# status -> (diagnosis, procedure, note); "{surface}" is the surface label
CLINICAL_TEMPLATES: Dict[str, Tuple[str, str, str]] = {
    "alert": (
        "Lesion / risk detected on {surface}",
        "Evaluation + resin restoration (mock)",
        "Conservative treatment suggested. No backend: narrative-only clinical guidance.",
    ),
    "treated": (
        "Treatment completed on {surface}",
        "Control / Follow-up",
        "Surface marked as treated. Visual evidence for decision-making.",
    ),
    "normal": (
        "No findings on {surface}",
        "Prophylaxis",
        "Normal status. Ideal to explain prevention and continuity of care.",
    ),
}


def all_teeth() -> List[str]:
    """Every tooth on the chart, upper row first."""
    return list(UPPER_LEFT_TO_RIGHT) + list(LOWER_LEFT_TO_RIGHT)
