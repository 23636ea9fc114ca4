"""Built-in physiotherapy template library.

Provides the two default Hebrew templates shipped with the application: an
initial assessment and a daily treatment report.
"""

import logging
from typing import Any, Dict, List

from clinidoc.models.template import Template
from clinidoc.template_engine.validators import ensure_valid_template

logger = logging.getLogger(__name__)

INITIAL_ASSESSMENT_ID = "builtin-initial-assessment"
TREATMENT_REPORT_ID = "builtin-treatment-report"

_PATIENT_NAME_FIELD: Dict[str, Any] = {
    "id": "1",
    "name": "patientName",
    "label": "שם המטופל",
    "type": "patient_info",
    "patient_source_field": "full_name",
    "required": True,
    "order": 1,
}

DEFAULT_TEMPLATE_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "id": INITIAL_ASSESSMENT_ID,
        "name": "הערכה ראשונית",
        "description": "טופס הערכה ראשונית למטופלים חדשים",
        "category": "assessment",
        "content": (
            "הערכה פיזיותרפית ראשונית\n"
            "\n"
            "שם המטופל: {{patientName}}\n"
            "מקור הפניה: {{referralSource}}\n"
            "\n"
            "תלונה עיקרית:\n"
            "{{mainComplaint}}\n"
            "\n"
            "רמת כאב נוכחית: {{painLevel}}/10\n"
            "\n"
            "בדיקה פיזיקלית:\n"
            "- טווח תנועה: נבדק ותועד\n"
            "- כוח שריר: נבדק ותועד\n"
            "- יציבה: נבדקה ותועדה\n"
            "\n"
            "תוכנית טיפול:\n"
            "1. לטיפול המשך לפי המלצות\n"
            "2. תרגילים בבית\n"
            "3. מעקב קבוע\n"
            "\n"
            "חתימת המטפל: ___________________"
        ),
        "fields": [
            _PATIENT_NAME_FIELD,
            {
                "id": "2",
                "name": "referralSource",
                "label": "מקור הפניה",
                "type": "select",
                "required": True,
                "options": [
                    {"value": "family_doctor", "label": "רופא משפחה"},
                    {"value": "specialist", "label": "רופא מומחה"},
                    {"value": "hospital", "label": "בית חולים"},
                    {"value": "self_referral", "label": "פניה עצמית"},
                    {"value": "other", "label": "אחר"},
                ],
                "order": 2,
            },
            {
                "id": "3",
                "name": "mainComplaint",
                "label": "תלונה עיקרית",
                "type": "textarea",
                "required": True,
                "placeholder": "תאר את הסיבה העיקרית לפנייה...",
                "order": 3,
            },
            {
                "id": "4",
                "name": "painLevel",
                "label": "רמת כאב נוכחית",
                "type": "pain-scale",
                "required": True,
                "validation": {"min": 0, "max": 10},
                "order": 4,
            },
        ],
    },
    {
        "id": TREATMENT_REPORT_ID,
        "name": "דוח טיפול",
        "description": "תיעוד טיפול יומי",
        "category": "treatment",
        "content": (
            "דוח טיפול פיזיותרפי\n"
            "\n"
            "שם המטופל: {{patientName}}\n"
            "תאריך הטיפול: {{treatmentDate}}\n"
            "\n"
            "מטרות הטיפול:\n"
            "{{treatmentGoals}}\n"
            "\n"
            "טיפולים שבוצעו:\n"
            "{{interventions}}\n"
            "\n"
            "תגובת המטופל:\n"
            "{{response}}\n"
            "\n"
            "הוראות להמשך:\n"
            "{{nextSteps}}\n"
            "\n"
            "שם המטפל: ___________________\n"
            "חתימה: ___________________"
        ),
        "fields": [
            _PATIENT_NAME_FIELD,
            {
                "id": "2",
                "name": "treatmentDate",
                "label": "תאריך הטיפול",
                "type": "date",
                "required": True,
                "order": 2,
            },
            {
                "id": "3",
                "name": "treatmentGoals",
                "label": "מטרות הטיפול",
                "type": "textarea",
                "required": True,
                "order": 3,
            },
            {
                "id": "4",
                "name": "interventions",
                "label": "התערבויות שבוצעו",
                "type": "textarea",
                "required": True,
                "order": 4,
            },
            {
                "id": "5",
                "name": "response",
                "label": "תגובת המטופל",
                "type": "textarea",
                "required": False,
                "order": 5,
            },
            {
                "id": "6",
                "name": "nextSteps",
                "label": "הוראות להמשך",
                "type": "textarea",
                "required": False,
                "order": 6,
            },
        ],
    },
]


def default_templates() -> List[Template]:
    """Build the built-in templates.

    Returns:
        Fresh Template instances, validated
    """
    templates = [
        Template.from_dict(definition) for definition in DEFAULT_TEMPLATE_DEFINITIONS
    ]
    for template in templates:
        ensure_valid_template(template)
    return templates


def seed_default_templates(template_store) -> List[Template]:
    """Install built-in templates that the store does not hold yet.

    Args:
        template_store: TemplateStore to seed

    Returns:
        Templates that were added
    """
    added = []
    for template in default_templates():
        if template_store.get(template.id) is None:
            template_store.add(template)
            added.append(template)
            logger.info(f"Seeded built-in template '{template.name}'")
    return added
