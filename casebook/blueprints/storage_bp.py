"""Storage blueprint — serves objects of the project_files bucket.

    GET /storage/<bucket>/<path>

Object paths carry an epoch-ms prefix and are not guessable from the UI,
and public URLs are part of the stored records, so objects are served
without a session (same as a public bucket).
"""

import os

from flask import Blueprint, abort, send_from_directory

from casebook.core.exceptions import StorageError
from casebook.services.storage_service import get_store

storage_bp = Blueprint("storage_bp", __name__, url_prefix="/storage")


@storage_bp.route("/<bucket>/<path:object_path>", methods=["GET"])
def serve_object(bucket: str, object_path: str):
    store = get_store()
    if bucket != store.bucket:
        abort(404)
    try:
        if not store.exists(object_path):
            abort(404)
    except StorageError:
        abort(404)
    directory, filename = os.path.split(store.resolve(object_path))
    return send_from_directory(directory, filename)
