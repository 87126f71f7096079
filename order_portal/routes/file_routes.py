from flask import Blueprint, current_app, send_from_directory, abort

bp = Blueprint("files", __name__, url_prefix="/files")


@bp.route("/<path:key>")
def serve_file(key):
    # Only the local backend stores files on this host
    if current_app.config.get("STORAGE_BACKEND") != "local":
        abort(404)
    return send_from_directory(current_app.config["STORAGE_FOLDER"], key)
