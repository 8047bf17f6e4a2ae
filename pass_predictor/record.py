from typing import Any, Dict, List, Tuple

# ---------------------------
# Default record
# ---------------------------
DEFAULT_RECORD: Dict[str, Any] = {
    # categorical
    "school": "GP",
    "sex": "F",
    "address": "U",
    "famsize": "GT3",
    "Pstatus": "T",
    "Mjob": "teacher",
    "Fjob": "teacher",
    "reason": "course",
    "guardian": "mother",
    "schoolsup": "yes",
    "famsup": "no",
    "paid": "no",
    "activities": "yes",
    "nursery": "yes",
    "higher": "yes",
    "internet": "yes",
    "romantic": "no",
    # numeric
    "age": 18,
    "Medu": 4,
    "Fedu": 4,
    "traveltime": 2,
    "studytime": 2,
    "failures": 0,
    "famrel": 4,
    "freetime": 3,
    "goout": 4,
    "Dalc": 1,
    "Walc": 1,
    "health": 3,
    "absences": 4,
    "G1": 14,
    "G2": 15,
}

FIELDS: List[str] = list(DEFAULT_RECORD)

# ---------------------------
# Categorical values
# ---------------------------
YES_NO = ["yes", "no"]
JOBS = ["teacher", "health", "services", "at_home", "other"]

SELECTS: Dict[str, List[str]] = {
    "school": ["GP", "MS"],
    "sex": ["F", "M"],
    "address": ["U", "R"],
    "famsize": ["LE3", "GT3"],
    "Pstatus": ["T", "A"],
    "Mjob": JOBS,
    "Fjob": JOBS,
    "reason": ["home", "reputation", "course", "other"],
    "guardian": ["mother", "father", "other"],
    "schoolsup": YES_NO,
    "famsup": YES_NO,
    "paid": YES_NO,
    "activities": YES_NO,
    "nursery": YES_NO,
    "higher": YES_NO,
    "internet": YES_NO,
    "romantic": YES_NO,
}

# ---------------------------
# Numeric ranges (editor hints, not enforced)
# ---------------------------
NUMERIC_RANGES: Dict[str, Tuple[int, int]] = {
    "age": (10, 30),
    "Medu": (0, 4),
    "Fedu": (0, 4),
    "traveltime": (1, 4),
    "studytime": (1, 4),
    "failures": (0, 5),
    "famrel": (1, 5),
    "freetime": (1, 5),
    "goout": (1, 5),
    "Dalc": (1, 5),
    "Walc": (1, 5),
    "health": (1, 5),
    "absences": (0, 100),
    "G1": (0, 20),
    "G2": (0, 20),
}

# Form layout: the main group is always shown, the rest sits behind "More fields"
PRIMARY_FIELDS: List[str] = [
    "school", "sex", "age",
    "address", "famsize", "Pstatus",
    "studytime", "failures", "absences",
    "G1", "G2", "traveltime",
    "Mjob", "Fjob", "reason",
    "guardian", "internet", "higher",
]
MORE_FIELDS: List[str] = [f for f in FIELDS if f not in PRIMARY_FIELDS]


def default_record() -> Dict[str, Any]:
    return dict(DEFAULT_RECORD)


def is_categorical(field: str) -> bool:
    return field in SELECTS


def options_for(field: str) -> List[str]:
    if field not in SELECTS:
        raise KeyError(f"'{field}' is not a categorical field")
    return list(SELECTS[field])
