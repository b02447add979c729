from flask import Blueprint, request, jsonify, g

from models.user import ROLE_ADMIN
from security.rbac import require_roles
from services.uploads import delete_header_image, save_header_image
from utils.audit import log_event

uploads_bp = Blueprint("uploads", __name__, url_prefix="/api/upload")


@uploads_bp.post("/header")
@require_roles(ROLE_ADMIN)
def upload_header():
    file = request.files.get("file")
    if file is None or not file.filename:
        return jsonify(error="No file uploaded"), 400

    saved = save_header_image(file)

    log_event("HEADER_UPLOAD", user_id=g.user.id, metadata={"filename": saved["filename"], "size": saved["size"]})
    return jsonify(success=True, url=saved["url"], filename=saved["filename"]), 200


@uploads_bp.delete("/header")
@require_roles(ROLE_ADMIN)
def delete_header():
    filename = request.args.get("filename")
    if not filename:
        return jsonify(error="filename is required"), 400

    if not delete_header_image(filename):
        return jsonify(error="File not found"), 404

    log_event("HEADER_DELETE", user_id=g.user.id, metadata={"filename": filename})
    return jsonify(success=True, message="File deleted"), 200
