"""ABOUTME: Serves uploaded profile pictures from local storage
ABOUTME: Only registered when pictures are stored on the local filesystem"""

from flask import Blueprint, current_app, send_from_directory
from flask.typing import ResponseReturnValue

media_bp = Blueprint("media", __name__)


@media_bp.route("/media/<path:key>")
def picture(key: str) -> ResponseReturnValue:
    # send_from_directory refuses keys that escape the storage directory
    return send_from_directory(current_app.config["PICTURE_STORAGE_DIR"], key)
