"""
Bulk user import from .xlsx files and the matching download templates.
"""
from io import BytesIO
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import IntegrityError

from models import db
from models.user import User, ROLE_BUYER, ROLE_COMPANY
from security.password import hash_password
from utils.errors import ValidationError
from utils.validators import is_valid_email, normalize_email, normalize_website

# role -> (name, email, description, website, password) column headers
COLUMNS = {
    ROLE_COMPANY: ("Company Name", "Company Email", "Company Description", "Company Website", "Password"),
    ROLE_BUYER: ("Buyer Name", "Buyer Email", "Buyer Description", "Buyer Website", "Password"),
}

TEMPLATE_ROWS = {
    ROLE_COMPANY: [
        ("AI Startup", "contact@aistartup.com", "AI solution development", "https://aistartup.com", "company123!"),
        ("Green Tech", "info@greentech.com", "Eco-friendly energy solutions", "https://greentech.com", "company456!"),
        ("FinTech Innovation", "hello@fintech.com", "Financial technology services", "fintech.com", "company789!"),
    ],
    ROLE_BUYER: [
        ("Kim Investor", "investor1@example.com", "Seed-stage investor", "https://vcfund.com", "buyer123!"),
        ("Park Venture", "investor2@example.com", "Startup accelerator", "https://accelerator.com", "buyer456!"),
        ("Lee Fund", "investor3@example.com", "Growth-stage investor", "https://growthfund.com", "buyer789!"),
    ],
}

SHEET_TITLES = {ROLE_COMPANY: "Companies", ROLE_BUYER: "Buyers"}
COLUMN_WIDTHS = (20, 30, 40, 30, 15)


def _cell_text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def read_rows(stream):
    """Returns [(row_number, {header: text})] for the first worksheet."""
    try:
        workbook = load_workbook(stream, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError):
        raise ValidationError("Invalid Excel file")

    out = []
    try:
        rows = workbook.worksheets[0].iter_rows(values_only=True)
        header = next(rows, None)
        keys = [_cell_text(h) for h in header or ()]
        for number, values in enumerate(rows, start=2):
            if values is None or all(v is None for v in values):
                continue
            out.append((number, {k: _cell_text(v) for k, v in zip(keys, values) if k}))
    finally:
        workbook.close()
    return out


def _user_from_row(row: dict, role: str) -> dict:
    name_key, email_key, desc_key, site_key, pw_key = COLUMNS[role]
    for key in COLUMNS[role]:
        if not row.get(key):
            raise ValueError(f"{key} is required")

    email = normalize_email(row[email_key])
    if not is_valid_email(email):
        raise ValueError("Invalid email format")

    return {
        "name": row[name_key],
        "email": email,
        "description": row[desc_key],
        "website": normalize_website(row[site_key]),
        "password": row[pw_key],
    }


def import_users(stream, role: str) -> dict:
    """
    Creates one user per spreadsheet row, committing row by row. A failing
    row is reported and skipped.
    """
    if role not in COLUMNS:
        raise ValidationError("type must be COMPANY or BUYER")

    rows = read_rows(stream)
    if not rows:
        raise ValidationError("The spreadsheet has no data rows")

    results, errors = [], []
    for number, row in rows:
        try:
            data = _user_from_row(row, role)
            if User.query.filter_by(email=data["email"]).first():
                raise ValueError("Email already registered")

            user = User(
                name=data["name"],
                email=data["email"],
                description=data["description"],
                website=data["website"],
                password_hash=hash_password(data["password"]),
                role=role,
            )
            db.session.add(user)
            db.session.commit()
            results.append({
                "row": number,
                "success": True,
                "user": {"id": user.id, "name": user.name, "email": user.email, "role": user.role},
            })
        except (ValueError, IntegrityError) as exc:
            db.session.rollback()
            message = "Email already registered" if isinstance(exc, IntegrityError) else str(exc)
            errors.append({"row": number, "error": message, "data": _redact(row, role)})

    return {
        "message": f"{len(results)} succeeded, {len(errors)} failed",
        "results": results,
        "errors": errors,
        "summary": {"total": len(rows), "success": len(results), "failed": len(errors)},
    }


def _redact(row: dict, role: str) -> dict:
    pw_key = COLUMNS[role][4]
    return {k: ("***" if k == pw_key else v) for k, v in row.items()}


def build_template(role: str) -> BytesIO:
    if role not in COLUMNS:
        raise ValidationError("type must be COMPANY or BUYER")

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLES[role]
    sheet.append(list(COLUMNS[role]))
    for row in TEMPLATE_ROWS[role]:
        sheet.append(list(row))
    for letter, width in zip("ABCDE", COLUMN_WIDTHS):
        sheet.column_dimensions[letter].width = width

    out = BytesIO()
    workbook.save(out)
    out.seek(0)
    return out
