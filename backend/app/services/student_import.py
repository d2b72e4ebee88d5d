"""
Service d'import / export CSV de la liste des élèves.

Colonnes (ordre fixe à l'export) :
  student_id, name, login_id, login_password, parent_id, parent_password, email, class

À l'import, chaque ligne valide est insérée ou mise à jour (clé : student_id).
Les lignes invalides sont rejetées une par une ; seules les 5 premières erreurs sont renvoyées.
"""

import csv
import io

from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.student import Student
from app.schemas.student import StudentImportReport, StudentImportRow

CSV_COLUMNS = [
    "student_id",
    "name",
    "login_id",
    "login_password",
    "parent_id",
    "parent_password",
    "email",
    "class",
]
REQUIRED_COLUMNS = {"student_id", "name", "login_id", "login_password", "parent_id", "parent_password"}
EMAIL_ADAPTER = TypeAdapter(EmailStr)
MAX_REPORTED_ERRORS = 5


def _normalize_header(raw: str) -> str:
    """Normalise un nom de colonne : minuscules, sans espaces."""
    return raw.strip().lower()


def _detect_separator(sample: str) -> str:
    """Détecte le séparateur CSV (virgule ou point-virgule)."""
    if sample.count(";") >= sample.count(","):
        return ";"
    return ","


def _is_valid_email(value: str) -> bool:
    """Même validation que le schéma StudentCreate (email-validator, adresses internationalisées comprises)."""
    try:
        EMAIL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return True


def _report(total_rows: int, inserted: int, updated: int, errors: list[str]) -> StudentImportReport:
    return StudentImportReport(
        total_rows=total_rows,
        inserted=inserted,
        updated=updated,
        rejected=len(errors),
        errors=errors[:MAX_REPORTED_ERRORS],
    )


def parse_and_import_csv(content: bytes, db: Session) -> StudentImportReport:
    """
    Parse le CSV, valide chaque ligne puis insère ou met à jour les élèves.

    Règles :
    - Colonnes requises : student_id, name, login_id, login_password, parent_id, parent_password
    - Colonnes optionnelles : email, class
    - Ligne avec un champ requis vide → rejetée
    - Email fourni mais malformé → rejetée
    - Doublon de student_id dans le fichier → seconde occurrence rejetée
    - student_id déjà en base → mise à jour, sinon insertion
    """
    text = content.decode("utf-8-sig")  # utf-8-sig gère le BOM Excel
    separator = _detect_separator(text.splitlines()[0] if text.splitlines() else "")

    reader = csv.DictReader(io.StringIO(text), delimiter=separator)

    if reader.fieldnames is None:
        return _report(0, 0, 0, ["Fichier CSV vide ou illisible"])

    normalized_fields = {_normalize_header(f) for f in reader.fieldnames}
    missing = REQUIRED_COLUMNS - normalized_fields
    if missing:
        return _report(0, 0, 0, [f"Colonnes manquantes : {', '.join(sorted(missing))}"])

    # Construire un mapping nom_normalise → nom_original
    field_map = {_normalize_header(f): f for f in reader.fieldnames}

    def cell(row: dict, column: str) -> str:
        if column not in field_map:
            return ""
        return (row.get(field_map[column]) or "").strip()

    valid_rows: list[StudentImportRow] = []
    errors: list[str] = []
    seen_in_file: set[str] = set()
    total_rows = 0

    for row_num, row in enumerate(reader, start=2):  # ligne 1 = header
        values = {column: cell(row, column) for column in CSV_COLUMNS}

        # Ligne vide
        if not any(values.values()):
            continue
        total_rows += 1

        empty = [c for c in CSV_COLUMNS if c in REQUIRED_COLUMNS and not values[c]]
        if empty:
            errors.append(f"Ligne {row_num} : champs obligatoires manquants ({', '.join(empty)})")
            continue

        if values["email"] and not _is_valid_email(values["email"]):
            errors.append(f"Ligne {row_num} : format email invalide : {values['email']}")
            continue

        if values["student_id"] in seen_in_file:
            errors.append(f"Ligne {row_num} : student_id {values['student_id']} en double dans le fichier")
            continue
        seen_in_file.add(values["student_id"])

        valid_rows.append(StudentImportRow(
            id=values["student_id"],
            name=values["name"],
            login_id=values["login_id"],
            login_password=values["login_password"],
            parent_id=values["parent_id"],
            parent_password=values["parent_password"],
            email=values["email"] or None,
            class_name=values["class"] or None,
        ))

    if not valid_rows:
        return _report(total_rows, 0, 0, errors)

    # Élèves déjà en base (batch query)
    existing_ids = set(db.execute(
        select(Student.id).where(Student.id.in_([r.id for r in valid_rows]))
    ).scalars().all())

    to_insert = [r.model_dump() for r in valid_rows if r.id not in existing_ids]
    to_update = [r.model_dump() for r in valid_rows if r.id in existing_ids]

    if to_insert:
        db.bulk_insert_mappings(Student, to_insert)
    if to_update:
        db.bulk_update_mappings(Student, to_update)
    db.commit()

    return _report(total_rows, len(to_insert), len(to_update), errors)


def export_students_csv(db: Session) -> str:
    """
    Génère le CSV de tous les élèves, triés par numéro d'étudiant.
    Retourne le contenu CSV sous forme de string (UTF-8 BOM pour Excel, séparateur ;).
    """
    students = db.execute(select(Student).order_by(Student.id)).scalars().all()

    output = io.StringIO()
    writer = csv.writer(output, delimiter=";")
    writer.writerow(CSV_COLUMNS)

    for s in students:
        writer.writerow([
            s.id,
            s.name,
            s.login_id,
            s.login_password,
            s.parent_id,
            s.parent_password,
            s.email or "",
            s.class_name or "",
        ])

    return "\ufeff" + output.getvalue()  # BOM pour compatibilité Excel
