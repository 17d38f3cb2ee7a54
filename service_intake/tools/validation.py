"""
Trinidad & Tobago validation rules for collected intake data.

Each rule returns a FieldValidation. The engine runs a rule only when its
field is present in the data and aggregates the outcomes into a
ValidationResult whose error strings carry a field-label prefix.

Usage:
    engine = ValidationEngine()
    result = engine.validate(service, {"phone": "868-123-4567"})
    assert result.overall_valid
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Optional

from service_intake.config import settings
from service_intake.schemas.service_schema import ServiceDefinition
from service_intake.schemas.validation_schema import FieldValidation, ValidationResult
from service_intake.utils import is_blank, normalize_text

logger = logging.getLogger(__name__)

DRIVER_LICENSE_SERVICE_ID = "SVC_002"
BUSINESS_PERMIT_SERVICE_ID = "SVC_003"

PHONE_PATTERN = re.compile(r"^(?:\+?1-?)?868-?\d{3}-?\d{4}$")
ID_NUMBER_PATTERN = re.compile(r"^[A-Z]{2}\d{6}[A-Z]?$")

DATE_FORMATS = (
    "%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d",
    "%B %d, %Y", "%d %B %Y", "%b %d, %Y", "%d %b %Y",
)

ACCEPTED_NATIONALITIES = [
    "Trinidadian", "Tobagonian", "Trinidad and Tobago", "Trinidad & Tobago",
    "T&T", "TT", "Trinbagonian", "Caribbean", "trini", "tobago",
]

LICENSE_CLASSES: dict[str, str] = {
    "A": "Motorcycle",
    "B": "Private motor car",
    "C": "Light goods vehicle",
    "D": "Heavy goods vehicle",
    "E": "Public service vehicle",
    "F": "Tractor",
    "G": "Road roller",
    "H": "Special purpose vehicle",
}

BUSINESS_TYPES = [
    "Sole Proprietorship", "Partnership", "Private Company", "Public Company",
    "NGO", "Cooperative", "Branch Office",
]

FIELD_LABELS: dict[str, str] = {
    "phone": "Phone",
    "date_of_birth": "Age",
    "nationality": "Nationality",
    "id_number": "ID Number",
    "license_class": "License Class",
    "business_type": "Business Type",
}

IMPROVEMENT_SUGGESTIONS: dict[str, str] = {
    "phone": "Use Trinidad & Tobago format: +1-868-XXX-XXXX",
    "date_of_birth": "Verify date of birth meets minimum age requirements",
    "nationality": 'Use "Trinidad and Tobago" or "Trinidadian"',
    "id_number": "ID numbers are two letters and six digits, e.g. AB123456",
    "license_class": f"Choose a license class from {', '.join(LICENSE_CLASSES)}",
    "business_type": f"Choose one of: {', '.join(BUSINESS_TYPES)}",
}


def _normalize_nationality(value: str) -> str:
    return normalize_text(value.replace("&", " and "))


_NORMALIZED_NATIONALITIES = [_normalize_nationality(n) for n in ACCEPTED_NATIONALITIES]


def parse_date(value: str) -> Optional[date]:
    """Parse a date in any of the supported formats. Returns None if unparseable."""
    cleaned = re.sub(r"\s+", " ", value.strip())
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def calculate_age(born: date, today: date) -> int:
    """Whole years between two dates by calendar difference."""
    return today.year - born.year - ((today.month, today.day) < (born.month, born.day))


def minimum_age_for(service: ServiceDefinition) -> tuple[int, Optional[str]]:
    """Return (minimum age, label) for a service; (0, None) when unrestricted."""
    identity = f"{service.service_id} {service.service_name}".lower()
    if service.service_id == DRIVER_LICENSE_SERVICE_ID or "driver" in identity:
        return settings.validation.driver_license_min_age, "driver license"
    if service.service_id == BUSINESS_PERMIT_SERVICE_ID or "business" in identity:
        return settings.validation.business_permit_min_age, "business permit"
    return 0, None


def is_driver_license(service: ServiceDefinition) -> bool:
    return (
        service.service_id == DRIVER_LICENSE_SERVICE_ID
        or "driver" in service.service_name.lower()
    )


def is_business_permit(service: ServiceDefinition) -> bool:
    return (
        service.service_id == BUSINESS_PERMIT_SERVICE_ID
        or "business" in service.service_name.lower()
    )


def validate_phone(phone: Optional[str]) -> FieldValidation:
    """Phone is optional; when given it must be a 868 number."""
    if is_blank(phone):
        return FieldValidation(valid=True, message="Phone number not provided (optional)")

    compact = re.sub(r"[\s().]", "", phone)
    if PHONE_PATTERN.match(compact):
        return FieldValidation(valid=True, message="Valid Trinidad & Tobago phone number")
    return FieldValidation(
        valid=False,
        message="Invalid Trinidad & Tobago phone number format",
        suggestion=IMPROVEMENT_SUGGESTIONS["phone"],
    )


def validate_age(
    date_of_birth: Optional[str],
    service: ServiceDefinition,
    today: Optional[date] = None,
) -> FieldValidation:
    """Check the applicant meets the service's minimum age."""
    if is_blank(date_of_birth):
        return FieldValidation(valid=False, message="Date of birth is required")

    born = parse_date(date_of_birth)
    if born is None:
        return FieldValidation(
            valid=False,
            message=f"Could not understand date of birth '{date_of_birth.strip()}'",
            suggestion="Use a date such as 1990-05-15 or 15/05/1990",
        )

    today = today or date.today()
    if born > today:
        return FieldValidation(valid=False, message="Date of birth cannot be in the future")

    age = calculate_age(born, today)
    min_age, label = minimum_age_for(service)
    details = {"age": age, "min_age": min_age}
    if age < min_age:
        return FieldValidation(
            valid=False,
            message=f"Minimum age for {label} is {min_age} years. Current age: {age}",
            suggestion=IMPROVEMENT_SUGGESTIONS["date_of_birth"],
            details=details,
        )
    return FieldValidation(valid=True, message=f"Age verified: {age} years", details=details)


def validate_nationality(nationality: Optional[str]) -> FieldValidation:
    """Accept Trinidad & Tobago nationality spellings.

    An exact match on the normalized value passes outright. A substring
    match in either direction also passes, flagged ``details["match"] ==
    "partial"`` so the engine can surface a warning.
    """
    default = settings.validation.default_nationality
    if is_blank(nationality):
        return FieldValidation(
            valid=False, message="Nationality is required", suggestion=default
        )

    value = _normalize_nationality(nationality)
    if value in _NORMALIZED_NATIONALITIES:
        return FieldValidation(
            valid=True, message="Valid nationality", details={"match": "exact"}
        )

    for accepted in _NORMALIZED_NATIONALITIES:
        if accepted in value or value in accepted:
            return FieldValidation(
                valid=True,
                message="Valid nationality",
                details={"match": "partial", "matched": accepted},
            )

    return FieldValidation(
        valid=False,
        message="Please specify Trinidad & Tobago nationality",
        suggestion=default,
    )


def validate_id_number(id_number: Optional[str]) -> FieldValidation:
    if is_blank(id_number):
        return FieldValidation(valid=False, message="ID number is required")

    if ID_NUMBER_PATTERN.match(id_number.strip().upper()):
        return FieldValidation(valid=True, message="Valid ID number format")
    return FieldValidation(
        valid=False,
        message="Invalid ID number format",
        suggestion=IMPROVEMENT_SUGGESTIONS["id_number"],
    )


def validate_license_class(license_class: Optional[str]) -> FieldValidation:
    if is_blank(license_class):
        return FieldValidation(valid=False, message="License class is required")

    code = license_class.strip().upper()
    if code.startswith("CLASS "):
        code = code[len("CLASS "):].strip()
    if code in LICENSE_CLASSES:
        return FieldValidation(
            valid=True,
            message=f"Valid license class: {LICENSE_CLASSES[code]}",
            details={"class": code, "description": LICENSE_CLASSES[code]},
        )
    return FieldValidation(
        valid=False,
        message=f"Invalid license class '{license_class.strip()}'",
        suggestion=IMPROVEMENT_SUGGESTIONS["license_class"],
    )


def validate_business_type(business_type: Optional[str]) -> FieldValidation:
    if is_blank(business_type):
        return FieldValidation(valid=False, message="Business type is required")

    value = normalize_text(business_type)
    for canonical in BUSINESS_TYPES:
        if canonical.lower() == value:
            return FieldValidation(
                valid=True,
                message=f"Valid business type: {canonical}",
                details={"business_type": canonical},
            )
    return FieldValidation(
        valid=False,
        message=f"Invalid business type '{business_type.strip()}'",
        suggestion=IMPROVEMENT_SUGGESTIONS["business_type"],
    )


class ValidationEngine:
    """Runs the field rules that apply to a service over its collected data."""

    def validate(
        self,
        service: ServiceDefinition,
        data: dict[str, str],
        today: Optional[date] = None,
    ) -> ValidationResult:
        result = ValidationResult()

        def present(name: str) -> bool:
            return not is_blank(data.get(name))

        if present("phone"):
            self._record(result, "phone", validate_phone(data["phone"]))
        if present("date_of_birth"):
            self._record(
                result, "date_of_birth", validate_age(data["date_of_birth"], service, today)
            )
        if present("nationality"):
            outcome = validate_nationality(data["nationality"])
            self._record(result, "nationality", outcome)
            if outcome.valid and outcome.details.get("match") == "partial":
                result.warnings.append(
                    f"Nationality: '{data['nationality'].strip()}' was accepted as "
                    f"{settings.validation.default_nationality}; please confirm"
                )
        if present("id_number"):
            self._record(result, "id_number", validate_id_number(data["id_number"]))
        if present("license_class") and is_driver_license(service):
            self._record(
                result, "license_class", validate_license_class(data["license_class"])
            )
        if present("business_type") and is_business_permit(service):
            self._record(
                result, "business_type", validate_business_type(data["business_type"])
            )

        logger.debug(
            "Validated %s: %d rules, %d errors",
            service.service_id, len(result.field_validations), len(result.errors),
        )
        return result

    @staticmethod
    def _record(result: ValidationResult, field_name: str, outcome: FieldValidation) -> None:
        result.field_validations[field_name] = outcome
        if not outcome.valid:
            result.errors.append(f"{FIELD_LABELS[field_name]}: {outcome.message}")
            result.overall_valid = False


def improvement_suggestions(result: ValidationResult) -> list[dict[str, str]]:
    """One suggestion per failing field, in rule order."""
    return [
        {"field": name, "suggestion": IMPROVEMENT_SUGGESTIONS[name]}
        for name in result.invalid_fields
        if name in IMPROVEMENT_SUGGESTIONS
    ]


def validation_summary(result: ValidationResult) -> dict[str, Any]:
    return {
        "total_fields_checked": len(result.field_validations),
        "errors_found": len(result.errors),
        "warnings_found": len(result.warnings),
        "tt_specific_rules_applied": True,
    }
