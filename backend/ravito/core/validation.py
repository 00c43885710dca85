"""
Validation des formulaires d'inscription et de profil.

Règles locales à la Côte d'Ivoire (numéros à 10 chiffres) et messages
d'erreur en français, affichés tels quels par le frontend.
"""
import re
from typing import List, NamedTuple


class ValidationResult(NamedTuple):
    is_valid: bool
    error: str


class PasswordStrength(NamedTuple):
    score: int
    label: str
    color: str
    is_valid: bool
    errors: List[str]


PHONE_CI_PATTERN = re.compile(r"^(07|05|01)\d{8}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PASSWORD_LABELS = ["Très faible", "Faible", "Moyen", "Fort", "Très fort"]
PASSWORD_COLORS = ["#EF4444", "#F97316", "#EAB308", "#22C55E", "#10B981"]


def _digits(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def validate_phone_ci(phone: str) -> ValidationResult:
    """Valide un numéro ivoirien: 07XXXXXXXX, 05XXXXXXXX ou 01XXXXXXXX"""
    cleaned = _digits(phone)

    if not cleaned:
        return ValidationResult(False, "Le numéro de téléphone est requis")

    if len(cleaned) != 10:
        return ValidationResult(False, "Le numéro doit contenir 10 chiffres")

    if not PHONE_CI_PATTERN.match(cleaned):
        return ValidationResult(False, "Le numéro doit commencer par 07, 05 ou 01")

    return ValidationResult(True, "")


def format_phone_ci(phone: str) -> str:
    """Formate en groupes de 2 chiffres: XX XX XX XX XX"""
    limited = _digits(phone)[:10]
    return " ".join(limited[i:i + 2] for i in range(0, len(limited), 2))


def validate_email(email: str) -> ValidationResult:
    if not email:
        return ValidationResult(False, "L'email est requis")

    if not EMAIL_PATTERN.match(email):
        return ValidationResult(False, "Format d'email invalide")

    return ValidationResult(True, "")


def validate_password(password: str) -> PasswordStrength:
    """
    Score 0-4 cumulatif: 8+ caractères, 12+ caractères, majuscule, chiffre, symbole.

    Valide dès que le score atteint 2 avec au moins 8 caractères; la longueur 12
    et le symbole améliorent le score sans être exigés.
    """
    password = password or ""
    errors: List[str] = []
    score = 0

    if len(password) >= 8:
        score += 1
    else:
        errors.append("Au moins 8 caractères")

    if len(password) >= 12:
        score += 1

    if re.search(r"[A-Z]", password):
        score += 1
    else:
        errors.append("Au moins une majuscule")

    if re.search(r"[0-9]", password):
        score += 1
    else:
        errors.append("Au moins un chiffre")

    if re.search(r"[^A-Za-z0-9]", password):
        score += 1

    capped = min(score, 4)
    return PasswordStrength(
        score=capped,
        label=PASSWORD_LABELS[capped],
        color=PASSWORD_COLORS[capped],
        is_valid=score >= 2 and len(password) >= 8,
        errors=errors,
    )


def validate_full_name(name: str) -> ValidationResult:
    """Prénom + nom"""
    if not name or len(name.strip()) < 3:
        return ValidationResult(False, "Le nom complet est requis")

    if len(name.strip().split()) < 2:
        return ValidationResult(False, "Veuillez entrer votre prénom et nom")

    return ValidationResult(True, "")
