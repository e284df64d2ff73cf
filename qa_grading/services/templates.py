# qa_grading/services/templates.py
import re
from typing import Optional, Sequence

from qa_grading.schemas.template import EvaluationTemplate

INFORMAL_SCHOOLING = "INFORMAL SCHOOLING"
FORMAL_SCHOOLING = "FORMAL SCHOOLING"
TRIAL_CLASS = "TRIAL CLASS"

INFORMAL_PREFIXES = frozenset({"ng", "n5", "pk", "ps", "tp", "tc"})
FORMAL_PREFIXES = frozenset({"kg", "k1", "ga", "gs", "g2", "gb", "g3", "gd"})
TRIAL_PREFIXES = frozenset({"f1"})

# e.g. ps_070424_1000AM_Apple
_TRADITIONAL_CODE = re.compile(r"^(?:[a-z]+|trial)_\d{6}_\d{4}(AM|PM)_[A-Za-z]+$")
# e.g. f1_free_070424_1000AM_J.Smith
_FREE_LESSON_CODE = re.compile(r"^f\d+_free_\d{6}_\d{4}(AM|PM)_[A-Za-z.]+$")


def class_code_prefix(code: str) -> str:
    return code.split("_", 1)[0].lower()


def validate_class_code(code: str | None) -> bool:
    if not code:
        return False
    return bool(_TRADITIONAL_CODE.match(code) or _FREE_LESSON_CODE.match(code))


def is_trial_class(code: str | None) -> bool:
    return bool(code) and class_code_prefix(code) in TRIAL_PREFIXES


def _find_template(
    templates: Sequence[EvaluationTemplate],
    marker: str,
    exclude: str | None = None,
) -> Optional[EvaluationTemplate]:
    for template in templates:
        name = template.name or ""
        if marker not in name:
            continue
        if exclude and exclude in name:
            continue
        return template
    return None


def get_template_id_for_class_code(
    code: str | None,
    templates: Sequence[EvaluationTemplate],
):
    """Template id for the rubric a class code is evaluated with, or None."""
    if not code:
        return None

    prefix = class_code_prefix(code)
    if prefix in INFORMAL_PREFIXES:
        template = _find_template(templates, INFORMAL_SCHOOLING)
    elif prefix in FORMAL_PREFIXES:
        # "INFORMAL SCHOOLING" also contains "FORMAL SCHOOLING"
        template = _find_template(templates, FORMAL_SCHOOLING, exclude=INFORMAL_SCHOOLING)
    elif prefix in TRIAL_PREFIXES:
        template = _find_template(templates, TRIAL_CLASS)
    else:
        return None

    return template.id if template else None
